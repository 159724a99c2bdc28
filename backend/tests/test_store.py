import json

import pytest

from abgame.errors import StorageUnavailable, ValidationError
from abgame.services.leaderboard import JsonFileLeaderboardStore, SqlLeaderboardStore, build_store


@pytest.fixture()
def store(tmp_path):
    s = JsonFileLeaderboardStore(tmp_path / 'data' / 'leaderboard.json')
    s.initialize()
    return s


def test_initialize_creates_empty_collection(tmp_path):
    path = tmp_path / 'nested' / 'leaderboard.json'
    JsonFileLeaderboardStore(path).initialize()
    assert json.loads(path.read_text()) == []


def test_initialize_keeps_existing_entries(tmp_path):
    path = tmp_path / 'leaderboard.json'
    path.write_text(json.dumps([{'id': 1, 'name': 'Old', 'round1Score': 1, 'round2Score': 2, 'delta': 1, 'timestamp': 'x'}]))
    s = JsonFileLeaderboardStore(path)
    s.initialize()
    assert [e['name'] for e in s.list_entries()] == ['Old']
    entry = s.append('New', 0, 0)
    assert entry['id'] > 1


def test_initialize_fails_when_location_unwritable(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('a file, not a directory')
    with pytest.raises(StorageUnavailable):
        JsonFileLeaderboardStore(blocker / 'leaderboard.json').initialize()


def test_append_persists_and_computes_delta(store):
    entry = store.append('Ana', 4, 9)
    assert entry['delta'] == 5
    on_disk = json.loads(open(store.path).read())
    assert on_disk == [entry]


def test_append_accepts_integer_strings(store):
    entry = store.append('Ana', '4', ' 9 ')
    assert (entry['round1Score'], entry['round2Score'], entry['delta']) == (4, 9, 5)


@pytest.mark.parametrize('name, r1, r2', [
    (None, 1, 2),
    ('', 1, 2),
    ('  ', 1, 2),
    ('Ana', None, 2),
    ('Ana', 1, None),
    ('Ana', True, 2),
    ('Ana', 'four', 2),
    ('Ana', 1.5, 2),
    ('Ana', -1, 2),
    ('Ana', '--5', 2),
    ('Ana', '\u00b2', 2),
    ('Ana', 10 ** 30, 2),
    ('Ana', 1, str(2 ** 63)),
])
def test_invalid_submissions_leave_store_untouched(store, name, r1, r2):
    before = open(store.path).read()
    with pytest.raises(ValidationError):
        store.append(name, r1, r2)
    assert open(store.path).read() == before


def test_ids_are_unique_for_rapid_appends(store):
    ids = [store.append('P', i, i)['id'] for i in range(20)]
    assert len(set(ids)) == 20
    assert ids == sorted(ids)


def test_list_orders_by_delta(store):
    for r1, r2 in [(5, 5), (1, 9), (9, 1), (3, 4)]:
        store.append('P', r1, r2)
    assert [e['delta'] for e in store.list_entries()] == [8, 1, 0, -8]


def test_non_list_file_is_unavailable(store):
    with open(store.path, 'w') as fh:
        json.dump({'entries': []}, fh)
    with pytest.raises(StorageUnavailable):
        store.list_entries()


def test_submit_reads_camel_case_payload(store):
    entry = store.submit({'name': 'Ana', 'round1Score': 2, 'round2Score': 3})
    assert entry['delta'] == 1
    with pytest.raises(ValidationError):
        store.submit({'name': 'Ana', 'round1Score': 2})


def test_build_store_selects_backend(tmp_path):
    assert isinstance(build_store({'LEADERBOARD_BACKEND': 'file', 'LEADERBOARD_FILE': str(tmp_path / 'x.json')}), JsonFileLeaderboardStore)
    assert isinstance(build_store({'LEADERBOARD_BACKEND': 'sql'}), SqlLeaderboardStore)
    with pytest.raises(ValueError):
        build_store({'LEADERBOARD_BACKEND': 'redis'})


def test_sql_store_contract(sql_app):
    s = SqlLeaderboardStore()
    first = s.append('Ana', 4, 9)
    second = s.append('Bo', 6, 2)
    assert first['delta'] == 5
    assert second['delta'] == -4
    assert first['id'] != second['id']
    assert first['timestamp'].endswith('Z')
    assert [e['name'] for e in s.list_entries()] == ['Ana', 'Bo']
    with pytest.raises(ValidationError):
        s.append('Cy', None, 1)
    assert len(s.list_entries()) == 2


@pytest.mark.parametrize('contents', [
    [1, 2],
    [{'name': 'x'}, {'name': 'y'}],
    [{'id': 1, 'delta': '5'}],
    [{'id': None, 'delta': 3}],
])
def test_malformed_entries_are_unavailable(store, contents):
    with open(store.path, 'w') as fh:
        json.dump(contents, fh)
    with pytest.raises(StorageUnavailable):
        store.list_entries()
    with pytest.raises(StorageUnavailable):
        store.append('Ana', 4, 9)
    assert json.loads(open(store.path).read()) == contents


def test_sql_store_rejects_oversized_scores(sql_app):
    s = SqlLeaderboardStore()
    with pytest.raises(ValidationError):
        s.append('Ana', 10 ** 30, 1)
    assert s.list_entries() == []
    entry = s.append('Ana', 2 ** 63 - 1, 2 ** 63 - 1)
    assert entry['delta'] == 0
