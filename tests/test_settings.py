import pytest

from lanbeacon.exceptions import SettingsError, UnknownSettingError
from lanbeacon.settings import Setting, SettingsRegistry, SettingType


def port_setting():
    return Setting(SettingType.INTEGER, 'BroadcastPort', 'Broadcast Port', 40816,
                   minimum=0, maximum=65535)


def interval_setting():
    return Setting(SettingType.INTEGER, 'BroadcastInterval', 'Broadcast Interval', 5000,
                   minimum=1)


@pytest.fixture
def registry():
    registry = SettingsRegistry()
    registry.add(port_setting())
    registry.add(interval_setting())
    return registry


def test_value_falls_back_to_default(registry):
    assert registry.value('BroadcastPort') == 40816


def test_unknown_setting(registry):
    with pytest.raises(UnknownSettingError):
        registry.value('Nope')


def test_set_notifies_with_changed_names(registry):
    seen = []
    registry.subscribe(seen.append)

    assert registry.set('BroadcastPort', 40817) is True
    assert registry.value('BroadcastPort') == 40817
    assert seen == [['BroadcastPort']]


def test_setting_same_value_does_not_notify(registry):
    seen = []
    registry.subscribe(seen.append)

    assert registry.set('BroadcastPort', 40816) is False
    registry.set('BroadcastInterval', 1000)
    registry.set('BroadcastInterval', 1000)
    assert seen == [['BroadcastInterval']]


def test_batch_is_one_notification(registry):
    seen = []
    registry.subscribe(seen.append)

    changed = registry.update({'BroadcastPort': 1, 'BroadcastInterval': 5000})

    assert changed == ['BroadcastPort']
    assert seen == [['BroadcastPort']]


def test_values_are_coerced(registry):
    registry.set('BroadcastInterval', '250')
    assert registry.value('BroadcastInterval') == 250


def test_invalid_batch_changes_nothing(registry):
    seen = []
    registry.subscribe(seen.append)

    with pytest.raises(SettingsError):
        registry.update({'BroadcastInterval': 1000, 'BroadcastPort': 70000})
    with pytest.raises(ValueError):
        registry.set('BroadcastInterval', 'soon')
    with pytest.raises(SettingsError):
        registry.set('BroadcastInterval', 0)

    assert registry.value('BroadcastInterval') == 5000
    assert seen == []


def test_values_stored_before_registration():
    registry = SettingsRegistry()
    registry.update({'BroadcastPort': '1234'})
    registry.add(port_setting())
    assert registry.value('BroadcastPort') == 1234


def test_invalid_stored_value_fails_on_registration():
    registry = SettingsRegistry()
    registry.update({'BroadcastPort': -1})
    with pytest.raises(SettingsError):
        registry.add(port_setting())


def test_remove_keeps_stored_value(registry):
    setting = registry.get('BroadcastPort')
    registry.set('BroadcastPort', 9)
    registry.remove(setting)

    assert registry.get('BroadcastPort') is None
    assert registry.value('BroadcastPort') == 9


def test_reset_restores_default(registry):
    registry.set('BroadcastPort', 9)
    seen = []
    registry.subscribe(seen.append)

    assert registry.reset(['BroadcastPort', 'BroadcastInterval']) == ['BroadcastPort']
    assert registry.value('BroadcastPort') == 40816
    assert seen == [['BroadcastPort']]


def test_failing_subscriber_does_not_block_others(registry):
    seen = []

    def broken(names):
        raise RuntimeError("boom")

    registry.subscribe(broken)
    registry.subscribe(seen.append)
    registry.set('BroadcastPort', 5)

    assert seen == [['BroadcastPort']]


def test_unsubscribe(registry):
    seen = []
    registry.subscribe(seen.append)
    registry.unsubscribe(seen.append)
    registry.set('BroadcastPort', 5)
    assert seen == []


def test_boolean_and_string_settings():
    flag = Setting(SettingType.BOOLEAN, 'FilterSelf', 'Filter Self', True)
    name = Setting(SettingType.STRING, 'DeviceName', 'Device Name', '')
    assert flag.coerce('false') is False
    assert flag.coerce('on') is True
    assert name.coerce(42) == '42'
