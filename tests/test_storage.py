"""
Tests for the key-value storage backends and the write retry policy.

Run with: pytest tests/test_storage.py -v
"""

from unittest.mock import patch

import pytest

from autobrand_crm.errors import StorageReadError, StorageWriteError
from autobrand_crm.storage import JsonFileStorage, MemoryStorage


class TestMemoryStorage:
    """Test the in-memory backend."""

    def test_set_get_delete(self):
        """Values round-trip and deletes are idempotent."""
        storage = MemoryStorage()

        storage.save('k', 'v')
        assert storage.load('k') == 'v'

        storage.delete('k')
        storage.delete('k')
        assert storage.load('k') is None


class TestJsonFileStorage:
    """Test the file backend."""

    def test_writes_one_file_per_key(self, tmp_path):
        """Each key is stored as <key>.json."""
        storage = JsonFileStorage(tmp_path / 'data')

        storage.save('crm', '{"leads": []}')

        assert (tmp_path / 'data' / 'crm.json').read_text() == '{"leads": []}'
        assert storage.load('crm') == '{"leads": []}'

    def test_missing_key(self, tmp_path):
        """An unwritten key loads as None."""
        assert JsonFileStorage(tmp_path).load('crm') is None

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Repeated writes replace the file atomically."""
        storage = JsonFileStorage(tmp_path)

        storage.save('crm', 'one')
        storage.save('crm', 'two')

        assert storage.load('crm') == 'two'
        assert [p.name for p in tmp_path.iterdir()] == ['crm.json']

    def test_read_failure_wrapped(self, tmp_path):
        """OS errors on read become StorageReadError."""
        storage = JsonFileStorage(tmp_path)
        storage.save('crm', 'x')

        with patch('pathlib.Path.read_text', side_effect=PermissionError('denied')):
            with pytest.raises(StorageReadError):
                storage.load('crm')


class TestWriteRetry:
    """Test the retry-once write policy."""

    def test_transient_failure_retried(self):
        """One failed write followed by a success is not an error."""
        storage = MemoryStorage(retry_wait=0)
        calls = []

        def flaky(key, value):
            calls.append(key)
            if len(calls) == 1:
                raise OSError('busy')
            storage.data[key] = value

        with patch.object(storage, '_set', side_effect=flaky):
            storage.save('crm', 'v')

        assert len(calls) == 2
        assert storage.data['crm'] == 'v'

    def test_persistent_failure_surfaces(self):
        """Two failed attempts raise StorageWriteError with the attempt count."""
        storage = MemoryStorage(retries=1, retry_wait=0)

        with patch.object(storage, '_set', side_effect=OSError('disk full')) as set_:
            with pytest.raises(StorageWriteError) as exc_info:
                storage.save('crm', 'v')

        assert set_.call_count == 2
        assert exc_info.value.context['attempts'] == 2
        assert exc_info.value.context['original_error'] == 'disk full'

    def test_no_retry_configured(self):
        """retries=0 means a single attempt."""
        storage = MemoryStorage(retries=0, retry_wait=0)

        with patch.object(storage, '_set', side_effect=OSError('nope')) as set_:
            with pytest.raises(StorageWriteError):
                storage.save('crm', 'v')

        assert set_.call_count == 1

    def test_non_os_errors_not_retried(self):
        """Programming errors propagate unchanged on the first attempt."""
        storage = MemoryStorage(retry_wait=0)

        with patch.object(storage, '_set', side_effect=TypeError('bad value')) as set_:
            with pytest.raises(TypeError):
                storage.save('crm', 'v')

        assert set_.call_count == 1
