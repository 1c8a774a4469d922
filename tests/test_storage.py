"""
Tests for bracket storage: the in-memory and YAML file stores and the repository.
"""
import os
import threading

import pytest
import yaml
from filelock import FileLock

from brackets.engine import create_bracket
from brackets.errors import SlotNotFillableError
from brackets.propagation import find_node
from brackets.storage import BracketRepository, MemoryStore, YamlFileStore


@pytest.fixture
def yaml_store(tmp_path):
    return YamlFileStore(str(tmp_path / "data"), lock_timeout=10)


@pytest.fixture(params=['memory', 'yaml'])
def store(request, tmp_path):
    if request.param == 'memory':
        return MemoryStore()
    return YamlFileStore(str(tmp_path / "data"), lock_timeout=10)


class TestKeyValueStores:
    """Behaviour shared by both stores."""

    def test_missing_key_returns_default(self, store):
        assert store.get('nothing') is None
        assert store.get('nothing', {}) == {}

    def test_set_then_get(self, store):
        store.set('bracket_x', {'id': 'x', 'rounds': [[1, 2], [3]]})
        assert store.get('bracket_x') == {'id': 'x', 'rounds': [[1, 2], [3]]}

    def test_delete(self, store):
        store.set('k', {'a': 1})
        store.delete('k')
        assert store.get('k') is None

    def test_delete_missing_is_noop(self, store):
        store.delete('never-written')

    def test_keys_by_prefix(self, store):
        store.set('bracket_b', {})
        store.set('bracket_a', {})
        store.set('league_1', {})
        assert store.keys('bracket_') == ['bracket_a', 'bracket_b']
        assert len(store.keys()) == 3

    def test_lock_as_context_manager(self, store):
        with store.lock('k'):
            store.set('k', {'n': 1})
        assert store.get('k') == {'n': 1}


class TestYamlFileStore:

    def test_writes_yaml_file(self, yaml_store):
        yaml_store.set('bracket_x', {'name': 'Cup', 'pits': 2})
        path = os.path.join(yaml_store.data_dir, 'bracket_x.yaml')
        with open(path, 'r', encoding='utf-8') as f:
            assert yaml.safe_load(f) == {'name': 'Cup', 'pits': 2}
        assert not os.path.exists(path + '.tmp')

    def test_key_order_preserved(self, yaml_store):
        yaml_store.set('k', {'zeta': 1, 'alpha': 2})
        with open(os.path.join(yaml_store.data_dir, 'k.yaml'), encoding='utf-8') as f:
            assert f.read().startswith('zeta')

    def test_corrupt_file_reads_as_default(self, yaml_store, caplog):
        os.makedirs(yaml_store.data_dir)
        with open(os.path.join(yaml_store.data_dir, 'bad.yaml'), 'w', encoding='utf-8') as f:
            f.write("key: [unclosed\n")
        assert yaml_store.get('bad', 'fallback') == 'fallback'
        assert 'Failed to parse' in caplog.text

    def test_empty_file_reads_as_default(self, yaml_store):
        os.makedirs(yaml_store.data_dir)
        open(os.path.join(yaml_store.data_dir, 'empty.yaml'), 'w').close()
        assert yaml_store.get('empty', []) == []

    @pytest.mark.parametrize("key", ['../escape', 'a/b', '', 'has space'])
    def test_unsafe_keys_rejected(self, yaml_store, key):
        with pytest.raises(ValueError):
            yaml_store.get(key)

    def test_keys_without_directory(self, yaml_store):
        assert yaml_store.keys() == []

    def test_lock_uses_lock_file(self, yaml_store):
        lock = yaml_store.lock('bracket_x')
        assert isinstance(lock, FileLock)
        assert lock.lock_file.endswith('bracket_x.lock')

    def test_lock_files_are_not_keys(self, yaml_store):
        yaml_store.set('bracket_x', {})
        with yaml_store.lock('bracket_x'):
            pass
        assert yaml_store.keys() == ['bracket_x']


class TestBracketRepository:

    @pytest.fixture
    def repo(self, store):
        return BracketRepository(store)

    @pytest.fixture
    def graph(self, make_participants, keep_order):
        return create_bracket("Cup", make_participants(4), 'single-elimination',
                              shuffler=keep_order, league_id='spring')

    def test_save_and_load(self, repo, graph):
        repo.save(graph)
        loaded = repo.load(graph.id)
        assert loaded is not graph
        assert loaded.to_dict() == graph.to_dict()

    def test_load_missing(self, repo):
        assert repo.load('bracket-0-000000') is None

    def test_delete(self, repo, graph):
        repo.save(graph)
        repo.delete(graph.id)
        assert repo.load(graph.id) is None

    def test_list_by_league(self, repo, graph, make_participants):
        other = create_bracket("Other", make_participants(3), 'round-robin')
        repo.save(graph)
        repo.save(other)
        assert len(repo.list_brackets()) == 2
        assert [b.id for b in repo.list_brackets('spring')] == [graph.id]
        assert repo.list_brackets('autumn') == []

    def test_submit_result_persists(self, repo, graph):
        repo.save(graph)
        updated = repo.submit_result(graph.id, 'R1-M1', 4, 2)
        assert find_node(updated, 'R2-M1').slot_a.participant_id == 'p1'
        stored = repo.load(graph.id)
        assert find_node(stored, 'R1-M1').winner_id == 'p1'
        assert find_node(stored, 'R2-M1').slot_a.participant_id == 'p1'

    def test_submit_result_missing_bracket(self, repo):
        assert repo.submit_result('bracket-0-000000', 'R1-M1', 1, 0) is None

    def test_failed_submit_leaves_stored_copy(self, repo, graph):
        repo.save(graph)
        before = repo.load(graph.id).to_dict()
        with pytest.raises(SlotNotFillableError):
            repo.submit_result(graph.id, 'R2-M1', 1, 0)
        assert repo.load(graph.id).to_dict() == before

    def test_concurrent_submissions_all_land(self, repo, make_participants):
        graph = create_bracket("League", make_participants(6), 'round-robin')
        repo.save(graph)
        match_ids = [m.id for m in graph.matches]
        errors = []

        def submit(match_id):
            try:
                repo.submit_result(graph.id, match_id, 2, 1)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=submit, args=(m,)) for m in match_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        stored = repo.load(graph.id)
        assert all(m.winner_id is not None for m in stored.matches)
