"""
Key-value storage for brackets.

The engine never touches storage. ``BracketRepository`` wraps a store and is
where score submissions get serialized: ``submit_result`` holds the bracket's
lock while it loads, records and saves.
"""
import logging
import os
import re
import threading
from contextlib import contextmanager
from typing import List, Optional

import yaml
from filelock import FileLock

from .models import BracketGraph
from .propagation import record_result

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r'^[A-Za-z0-9_.-]+$')


class KeyValueStore:
    """Minimal key-value interface. Values are plain dicts/lists."""

    def get(self, key: str, default=None):
        raise NotImplementedError

    def set(self, key: str, value) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self, prefix: str = '') -> List[str]:
        raise NotImplementedError

    def lock(self, key: str):
        """Context manager serializing writers of ``key``."""
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self):
        self._data = {}
        self._locks = {}
        self._guard = threading.Lock()

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def keys(self, prefix=''):
        return sorted(k for k in self._data if k.startswith(prefix))

    def lock(self, key):
        with self._guard:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]


class YamlFileStore(KeyValueStore):
    """One YAML file per key inside ``data_dir``."""

    def __init__(self, data_dir: str, lock_timeout: float = 10):
        self.data_dir = data_dir
        self.lock_timeout = lock_timeout

    def _path(self, key: str) -> str:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key {key!r}")
        return os.path.join(self.data_dir, f"{key}.yaml")

    def get(self, key, default=None):
        path = self._path(key)
        if not os.path.exists(path):
            return default
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f'Failed to parse {path}: {e}')
            return default
        return default if data is None else data

    def set(self, key, value):
        path = self._path(key)
        os.makedirs(self.data_dir, exist_ok=True)
        tmp_path = path + '.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            yaml.dump(value, f, default_flow_style=False, sort_keys=False)
        os.replace(tmp_path, path)

    def delete(self, key):
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)

    def keys(self, prefix=''):
        if not os.path.isdir(self.data_dir):
            return []
        result = []
        for filename in os.listdir(self.data_dir):
            if filename.endswith('.yaml') and filename.startswith(prefix):
                result.append(filename[:-len('.yaml')])
        return sorted(result)

    def lock(self, key):
        os.makedirs(self.data_dir, exist_ok=True)
        return FileLock(self._path(key)[:-len('.yaml')] + '.lock', timeout=self.lock_timeout)


class BracketRepository:
    PREFIX = 'bracket_'

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _key(self, bracket_id: str) -> str:
        return f"{self.PREFIX}{bracket_id}"

    def save(self, graph: BracketGraph) -> None:
        self.store.set(self._key(graph.id), graph.to_dict())

    def load(self, bracket_id: str) -> Optional[BracketGraph]:
        data = self.store.get(self._key(bracket_id))
        if data is None:
            return None
        return BracketGraph.from_dict(data)

    def delete(self, bracket_id: str) -> None:
        with self.store.lock(self._key(bracket_id)):
            self.store.delete(self._key(bracket_id))

    def list_brackets(self, league_id: Optional[str] = None) -> List[BracketGraph]:
        brackets = []
        for key in self.store.keys(self.PREFIX):
            data = self.store.get(key)
            if not data:
                continue
            if league_id is not None and data.get('leagueId') != league_id:
                continue
            brackets.append(BracketGraph.from_dict(data))
        return brackets

    @contextmanager
    def locked(self, bracket_id: str):
        with self.store.lock(self._key(bracket_id)):
            yield

    def submit_result(self, bracket_id: str, match_id: str, score_a, score_b) -> Optional[BracketGraph]:
        """
        Record a result against the stored bracket under its lock.

        Returns the updated bracket, or None if no such bracket is stored.
        Engine errors propagate and leave the stored copy untouched.
        """
        with self.locked(bracket_id):
            graph = self.load(bracket_id)
            if graph is None:
                return None
            record_result(graph, match_id, score_a, score_b)
            self.save(graph)
        logger.info("Recorded %s-%s for %s in bracket %s", score_a, score_b, match_id, bracket_id)
        return graph

