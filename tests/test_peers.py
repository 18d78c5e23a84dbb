from lanbeacon.discovery.peers import PeerTable


def test_one_record_per_peer_with_latest_time():
    table = PeerTable()
    for peer_id, now in [('A', 10), ('B', 20), ('A', 30), ('C', 40), ('B', 50)]:
        table.refresh(peer_id, now)

    assert len(table) == 3
    assert table.snapshot() == {'A': 30, 'B': 50, 'C': 40}


def test_last_seen_never_moves_backwards():
    table = PeerTable()
    table.refresh('A', 100)
    table.refresh('A', 50)
    assert table.last_seen('A') == 100


def test_evict_older_than():
    table = PeerTable()
    table.refresh('old', 0)
    table.refresh('edge', 1000)
    table.refresh('fresh', 20000)

    removed = table.evict_older_than(30000, 31000)

    assert removed == ['old']
    # now - last_seen == threshold is still visible
    assert 'edge' in table
    assert 'fresh' in table
    assert 'old' not in table


def test_evict_on_empty_table():
    assert PeerTable().evict_older_than(1, 100) == []
