import pytest

from lanbeacon.config import BROADCAST_PORT
from lanbeacon.discovery import DiscoveryEngine
from lanbeacon.identity import Identity
from lanbeacon.settings import SettingsRegistry

from .helpers import CountingScanner, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scanner():
    return CountingScanner()


@pytest.fixture
def make_engine(clock, scanner):
    def _make(values=None, identity=None):
        settings = SettingsRegistry()
        settings.update({BROADCAST_PORT: 0, **(values or {})})
        return DiscoveryEngine(
            settings,
            identity or Identity(uuid='A', name='Laptop'),
            clock=clock,
            scanner=scanner,
        )
    return _make
