from lanbeacon.identity import UUID_FILE, load_identity


def test_uuid_is_persisted(tmp_path):
    first = load_identity(tmp_path / 'data', name='Laptop')
    second = load_identity(tmp_path / 'data', name='Laptop')

    assert first == second
    assert (tmp_path / 'data' / UUID_FILE).read_text() == first.uuid


def test_name_defaults_to_host_name(tmp_path, monkeypatch):
    import lanbeacon.identity as identity_module
    monkeypatch.setattr(identity_module.platform, 'node', lambda: 'myhost')

    assert load_identity(tmp_path).name == 'myhost'


def test_payload(tmp_path):
    identity = load_identity(tmp_path, name='Laptop')
    assert identity.payload() == {'uuid': identity.uuid, 'name': 'Laptop'}
