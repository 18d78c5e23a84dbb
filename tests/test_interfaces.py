import socket
from collections import namedtuple

import psutil

from lanbeacon.discovery import interfaces

Addr = namedtuple('Addr', 'family address netmask broadcast ptp')
Stats = namedtuple('Stats', 'isup duplex speed mtu flags')


def fake_interfaces(monkeypatch, addrs, stats):
    monkeypatch.setattr(psutil, 'net_if_addrs', lambda: addrs)
    monkeypatch.setattr(psutil, 'net_if_stats', lambda: stats)


def test_collects_broadcast_addresses(monkeypatch):
    fake_interfaces(monkeypatch, {
        'lo': [Addr(socket.AF_INET, '127.0.0.1', '255.0.0.0', None, None)],
        'eth0': [
            Addr(socket.AF_INET, '192.168.1.10', '255.255.255.0', '192.168.1.255', None),
            Addr(socket.AF_INET, '192.168.1.11', '255.255.255.0', '192.168.1.255', None),
            Addr(socket.AF_INET6, 'fe80::1', None, None, None),
        ],
        'wlan0': [Addr(socket.AF_INET, '10.0.0.5', '255.255.0.0', '10.0.255.255', None)],
    }, {
        'lo': Stats(True, 0, 0, 65536, 'up,loopback,running'),
        'eth0': Stats(True, 2, 1000, 1500, 'up,broadcast,running,multicast'),
        'wlan0': Stats(True, 2, 300, 1500, 'up,broadcast,running,multicast'),
    })

    assert interfaces.list_broadcast_addresses() == {'192.168.1.255', '10.0.255.255'}


def test_skips_down_and_non_broadcast_interfaces(monkeypatch):
    fake_interfaces(monkeypatch, {
        'eth0': [Addr(socket.AF_INET, '192.168.1.10', '255.255.255.0', '192.168.1.255', None)],
        'tun0': [Addr(socket.AF_INET, '10.8.0.2', '255.255.255.0', '10.8.0.255', '10.8.0.1')],
    }, {
        'eth0': Stats(False, 0, 0, 1500, 'broadcast,multicast'),
        'tun0': Stats(True, 0, 0, 1500, 'up,pointopoint,running'),
    })

    assert interfaces.list_broadcast_addresses() == set()


def test_derives_broadcast_when_platform_reports_no_flags(monkeypatch):
    fake_interfaces(monkeypatch, {
        'Ethernet': [Addr(socket.AF_INET, '192.168.4.7', '255.255.252.0', None, None)],
        'Loopback': [Addr(socket.AF_INET, '127.0.0.1', '255.0.0.0', None, None)],
    }, {
        'Ethernet': Stats(True, 2, 1000, 1500, ''),
        'Loopback': Stats(True, 2, 1000, 1500, ''),
    })

    assert interfaces.list_broadcast_addresses() == {'192.168.7.255'}


def test_enumeration_failure_gives_empty_set(monkeypatch):
    def broken():
        raise OSError("no interfaces for you")

    monkeypatch.setattr(psutil, 'net_if_addrs', broken)
    assert interfaces.list_broadcast_addresses() == set()
