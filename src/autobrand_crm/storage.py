"""
Key-value storage backends for the store snapshot.

Handles:
- A JSON-file backend (one file per key, atomic replace on write)
- An in-memory backend for tests and embedding
- The write policy: retry a failed write, then surface StorageWriteError

Backends only move strings; encoding the document is the Store's job.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import structlog
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .config import config
from .errors import wrap_storage_error

logger = structlog.get_logger(__name__)


class KeyValueStorage(ABC):
    """
    Base class for string key-value backends.

    Subclasses implement _get/_set/_delete. The public load/save methods add
    the retry policy and translate backend failures into PersistenceError.
    """

    def __init__(self, retries: int | None = None, retry_wait: float = 0.05):
        """
        Args:
            retries: Extra write attempts after the first failure
                     (defaults to config.STORAGE_RETRIES)
            retry_wait: Seconds to wait between write attempts
        """
        self.retries = config.STORAGE_RETRIES if retries is None else retries
        self.retry_wait = retry_wait

    @abstractmethod
    def _get(self, key: str) -> str | None: ...

    @abstractmethod
    def _set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _delete(self, key: str) -> None: ...

    def load(self, key: str) -> str | None:
        """
        Read the value stored under key.

        Returns:
            The stored string, or None when the key has never been written

        Raises:
            StorageReadError: The backend failed to read
        """
        try:
            return self._get(key)
        except OSError as exc:
            logger.error('storage.read_failed', key=key, error=str(exc))
            raise wrap_storage_error(exc, 'read', {'key': key}) from exc

    def save(self, key: str, value: str) -> None:
        """
        Write value under key, retrying OS-level failures.

        Raises:
            StorageWriteError: Every attempt failed
        """
        retrying = Retrying(
            stop=stop_after_attempt(1 + self.retries),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_exception_type(OSError),
        )
        try:
            for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            'storage.write_retry',
                            key=key,
                            attempt=attempt.retry_state.attempt_number,
                        )
                    self._set(key, value)
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            logger.error('storage.write_failed', key=key, error=str(cause))
            raise wrap_storage_error(
                cause, 'write', {'key': key, 'attempts': 1 + self.retries}
            ) from cause

    def delete(self, key: str) -> None:
        """Remove key; missing keys are ignored."""
        try:
            self._delete(key)
        except OSError as exc:
            raise wrap_storage_error(exc, 'write', {'key': key}) from exc


class MemoryStorage(KeyValueStorage):
    """In-process backend. Values live only as long as the object."""

    def __init__(self, initial: dict[str, str] | None = None, **kwargs):
        super().__init__(**kwargs)
        self.data: dict[str, str] = dict(initial or {})

    def _get(self, key: str) -> str | None:
        return self.data.get(key)

    def _set(self, key: str, value: str) -> None:
        self.data[key] = value

    def _delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """
    File backend: each key is a <key>.json file under one directory.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader never sees a half-written snapshot.
    """

    def __init__(self, directory: str | Path | None = None, **kwargs):
        super().__init__(**kwargs)
        self.directory = Path(directory or config.STORAGE_DIR).expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f'{key}.json'

    def _get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding='utf-8')

    def _set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.directory, prefix=f'.{key}.', suffix='.tmp'
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                fh.write(value)
            os.replace(tmp_name, self.path_for(key))
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
