#!/usr/bin/env python3
"""
LAN Beacon CLI

Command-line interface for broadcast peer discovery.

Usage:
    lanbeacon start              # Announce this node and report peers
    lanbeacon peers              # List peers visible on the LAN
    lanbeacon identity           # Show this node's uuid and name
    lanbeacon config             # Show the effective configuration
"""

import asyncio
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.logging import RichHandler

from .config import Config, EXAMPLE_CONFIG, load_config
from .discovery import DiscoveredPeer
from .exceptions import SettingsError
from .identity import load_identity
from .node import BeaconNode

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level_name: str = 'INFO'):
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)]
    )


def run_async(coro):
    """Run a coroutine on an event loop that supports socket readers."""
    if sys.platform == 'win32':
        # The default proactor loop has no add_reader()
        loop = asyncio.SelectorEventLoop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()
    return asyncio.run(coro)


def build_config(config_path: Optional[Path], overrides: Dict[str, Any]) -> Config:
    """Load file + environment configuration and apply command-line overrides."""
    config = load_config(config_path)
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    return config


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              default=None, help='JSON config file')
@click.option('--data-dir', type=click.Path(file_okay=False, path_type=Path),
              default=None, help='Data directory (holds the device uuid)')
@click.option('--port', type=int, default=None, help='Broadcast UDP port')
@click.option('--interval', type=int, default=None, help='Broadcast interval (ms)')
@click.option('--expiry', type=int, default=None, help='Peer expiry (ms)')
@click.option('--name', default=None, help='Display name announced to peers')
@click.pass_context
def cli(ctx, verbose, config_path, data_dir, port, interval, expiry, name):
    """LAN Beacon - peer discovery by UDP broadcast."""
    ctx.ensure_object(dict)
    overrides = {
        'data_dir': data_dir,
        'broadcast_port': port,
        'broadcast_interval': interval,
        'broadcast_expiry': expiry,
        'device_name': name,
    }
    try:
        config = build_config(config_path, overrides)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")
    setup_logging(verbose, config.log_level)

    ctx.obj['config_path'] = config_path
    ctx.obj['overrides'] = overrides
    ctx.obj['config'] = config


def reload_node(node: BeaconNode, config_path: Optional[Path],
                overrides: Dict[str, Any]) -> Optional[List[str]]:
    """
    Re-read the configuration and apply it to a running node.

    A configuration that cannot be loaded or applied is logged and the
    node keeps its current settings.

    Returns:
        Names of the changed settings, or None if the reload failed
    """
    try:
        changed = node.reload(build_config(config_path, overrides))
    except (OSError, ValueError) as e:
        logger.error(f"Reload failed: {e}")
        return None
    if not changed:
        logger.info("Reload: nothing changed")
    return changed


def print_peer_event(peer: DiscoveredPeer, is_added: bool):
    if is_added:
        console.print(f"[green]+[/green] [cyan]{peer.name or '?'}[/cyan] "
                      f"[dim]{peer.peer_id}[/dim] at [yellow]{peer.ip}[/yellow]")
    else:
        console.print(f"[red]-[/red] [cyan]{peer.name or '?'}[/cyan] [dim]{peer.peer_id}[/dim]")


@cli.command()
@click.pass_context
def start(ctx):
    """Announce this node and report peers until interrupted."""
    config = ctx.obj['config']

    async def run():
        node = BeaconNode(config)
        node.discovery.on_peer_change(print_peer_event)

        loop = asyncio.get_running_loop()
        if hasattr(signal, 'SIGHUP'):
            loop.add_signal_handler(
                signal.SIGHUP, reload_node, node, ctx.obj['config_path'], ctx.obj['overrides']
            )

        try:
            await node.start()

            # Display info
            console.print(Panel.fit(
                f"[bold green]Beacon Node Started[/bold green]\n\n"
                f"UUID: [cyan]{node.identity.uuid}[/cyan]\n"
                f"Name: [cyan]{node.identity.name}[/cyan]\n"
                f"Port: [yellow]{node.engine.port if node.engine.is_bound else 'unbound'}[/yellow]\n"
                f"Interval: [yellow]{config.broadcast_interval} ms[/yellow]\n"
                f"Expiry: [yellow]{config.broadcast_expiry} ms[/yellow]",
                title="Node Info"
            ))
            console.print("\n[dim]Press Ctrl+C to stop"
                          f"{', send SIGHUP to reload the config' if hasattr(signal, 'SIGHUP') else ''}"
                          "[/dim]\n")

            while True:
                await asyncio.sleep(1)
        finally:
            await node.stop()
            console.print("[green]Node stopped[/green]")

    try:
        run_async(run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutting down...[/yellow]")
    except SettingsError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option('--timeout', '-t', default=6.0, show_default=True, help='Seconds to listen')
@click.pass_context
def peers(ctx, timeout):
    """List peers visible on the LAN."""
    config = ctx.obj['config']

    async def run():
        node = BeaconNode(config)

        console.print("[dim]Discovering peers...[/dim]")
        await node.start()
        try:
            await node.discovery.discover(timeout=timeout)
            discovered = node.get_peers()
        finally:
            await node.stop()

        if not discovered:
            console.print("[yellow]No peers found[/yellow]")
            return

        table = Table(title="Discovered Peers (LAN)")
        table.add_column("Name", style="cyan")
        table.add_column("UUID")
        table.add_column("Address", style="yellow")
        table.add_column("Last Seen", justify="right")

        now = time.time()
        for p in sorted(discovered, key=lambda p: p.name.lower()):
            table.add_row(
                p.name or '?',
                p.peer_id,
                ', '.join(p.addresses),
                f"{now - p.last_seen:.1f}s ago",
            )

        console.print(table)

    try:
        run_async(run())
    except SettingsError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.pass_context
def identity(ctx):
    """Show this node's uuid and display name."""
    config = ctx.obj['config']
    local = load_identity(Path(config.data_dir), config.device_name)

    console.print(Panel.fit(
        f"UUID: [cyan]{local.uuid}[/cyan]\n"
        f"Name: [cyan]{local.name}[/cyan]\n"
        f"Data Dir: [blue]{config.data_dir}[/blue]",
        title="Identity"
    ))


@cli.command('config')
@click.option('--example', is_flag=True, help='Print an example config file')
@click.pass_context
def show_config(ctx, example):
    """Show the effective configuration."""
    if example:
        console.print("Example configuration file (config.json):")
        console.print(EXAMPLE_CONFIG)
        return

    console.print_json(data=ctx.obj['config'].to_dict())


if __name__ == '__main__':
    cli()
