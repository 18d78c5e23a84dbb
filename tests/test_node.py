import pytest

from lanbeacon.config import BROADCAST_INTERVAL, Config
from lanbeacon.node import BeaconNode


@pytest.fixture
def config(tmp_path):
    return Config(broadcast_port=0, device_name='Laptop', data_dir=tmp_path)


@pytest.fixture(autouse=True)
def quiet_scanner(monkeypatch):
    import lanbeacon.discovery.broadcast as broadcast
    monkeypatch.setattr(broadcast, 'list_broadcast_addresses', lambda: set())


@pytest.mark.asyncio
async def test_start_and_stop(config):
    node = BeaconNode(config)
    await node.start()
    try:
        assert node.is_running
        assert node.engine.is_bound
        stats = node.get_stats()
        assert stats['name'] == 'Laptop'
        assert stats['settings'][BROADCAST_INTERVAL] == 5000
    finally:
        await node.stop()

    assert not node.is_running
    assert not node.engine.is_bound


@pytest.mark.asyncio
async def test_reload_applies_only_changes(config, tmp_path):
    node = BeaconNode(config)
    await node.start()
    try:
        port = node.engine.port
        new_config = Config(broadcast_port=0, broadcast_interval=1000,
                            device_name='Laptop', data_dir=tmp_path)

        changed = node.reload(new_config)

        assert changed == [BROADCAST_INTERVAL]
        assert node.engine.broadcast_timer.interval == 1000
        assert node.engine.port == port
    finally:
        await node.stop()


@pytest.mark.asyncio
async def test_reload_renames_node(config, tmp_path):
    node = BeaconNode(config)
    await node.start()
    try:
        uuid = node.identity.uuid
        node.reload(Config(broadcast_port=0, device_name='Desk', data_dir=tmp_path))

        assert node.identity.name == 'Desk'
        assert node.identity.uuid == uuid
        assert node.engine.identity.name == 'Desk'
    finally:
        await node.stop()
