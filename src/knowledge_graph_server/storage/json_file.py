"""JSON file persistence backend.

The whole graph lives in a single UTF-8 JSON document:

    {"entities": [...], "relations": [...]}

Writes go to a temporary file in the target directory which then replaces
the target atomically, so a crash mid-write never leaves a truncated graph.
The replacement keeps the permission bits of the existing file, and a file
that is not writable is reported instead of being replaced.
OS errors are translated into the typed persistence errors of
:mod:`knowledge_graph_server.knowledge.errors`.
"""

from __future__ import annotations

import asyncio
import errno
import json
import logging
import os
import stat
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from knowledge_graph_server.config import Settings, get_settings
from knowledge_graph_server.knowledge.errors import (
    GraphFileCorruptedError,
    PermissionDeniedError,
    PersistenceReadError,
    PersistenceWriteError,
    StorageFullError,
)
from knowledge_graph_server.schemas.graph import KnowledgeGraph
from knowledge_graph_server.storage.base import GraphPersistence

logger = structlog.get_logger(__name__)

DEFAULT_FILE_NAME = "knowledge-graph.json"

_TRANSIENT_ERRNOS = frozenset({errno.EAGAIN, errno.EBUSY, errno.EINTR})


def _is_transient_os_error(exception: BaseException) -> bool:
    """Check if a write failure is worth retrying.

    Args:
        exception: The exception raised by the write attempt.

    Returns:
        True for OS errors that usually clear up on their own.
    """
    return isinstance(exception, OSError) and exception.errno in _TRANSIENT_ERRNOS


def _default_file_mode() -> int:
    """Mode a newly created regular file gets under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def resolve_storage_file(
    storage_path: Path | str | None = None,
    file_name: str = DEFAULT_FILE_NAME,
) -> Path:
    """Determine the graph file location.

    A path ending in ``.json`` is taken as the file itself; any other path is
    a directory that will hold ``file_name``. Without a path, the file is
    placed in the user's home directory.

    Args:
        storage_path: Explicit file or directory path.
        file_name: File name used when ``storage_path`` is a directory.

    Returns:
        Absolute path of the graph file.
    """
    if storage_path is None:
        return (Path.home() / file_name).resolve()

    path = Path(storage_path).expanduser()
    if path.suffix.lower() == ".json":
        return path.resolve()
    return (path / file_name).resolve()


class JsonFileStorage(GraphPersistence):
    """Persist the knowledge graph to a single JSON file.

    Usage:
        storage = JsonFileStorage("/data/project/knowledge-graph.json")
        graph = await storage.load()
        await storage.save(graph)
    """

    def __init__(
        self,
        file_path: Path | str,
        *,
        retry_attempts: int = 3,
        retry_max_wait: float = 2.0,
    ) -> None:
        """Initialize the storage.

        Args:
            file_path: Location of the graph file.
            retry_attempts: Total attempts for writes failing with a transient error.
            retry_max_wait: Upper bound in seconds for the backoff between attempts.
        """
        self._path = Path(file_path)
        self._retry_attempts = max(1, retry_attempts)
        self._retry_max_wait = retry_max_wait
        self._log = logger.bind(component="json_file_storage", path=str(self._path))

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        storage_path: Path | str | None = None,
    ) -> JsonFileStorage:
        """Build the storage from application settings.

        Args:
            settings: Application settings. If not provided, loads from environment.
            storage_path: Overrides ``settings.storage.storage_path`` (e.g. from the CLI).
        """
        settings = settings or get_settings()
        path = resolve_storage_file(
            storage_path or settings.storage.storage_path,
            settings.storage.storage_file_name,
        )
        return cls(
            path,
            retry_attempts=settings.storage.save_retry_attempts,
            retry_max_wait=settings.storage.save_retry_max_wait,
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    async def load(self) -> KnowledgeGraph:
        """Load the graph from disk.

        Returns:
            The stored graph, or an empty graph if the file does not exist.

        Raises:
            GraphFileCorruptedError: If the file is not a valid graph document.
            PersistenceReadError: If the file cannot be read.
        """
        try:
            text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except FileNotFoundError:
            self._log.info("storage_file_missing_starting_empty")
            return KnowledgeGraph.empty()
        except UnicodeDecodeError as e:
            raise GraphFileCorruptedError(self._path, reason="Invalid UTF-8 content") from e
        except OSError as e:
            self._log.error(
                "storage_read_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise PersistenceReadError.from_os_error(self._path, e) from e

        try:
            graph = KnowledgeGraph.model_validate_json(text)
        except ValidationError as e:
            if any(err["type"] == "json_invalid" for err in e.errors()):
                reason = "Invalid JSON format"
            else:
                reason = "Unexpected graph structure"
            self._log.error("storage_file_corrupted", reason=reason, error_count=e.error_count())
            raise GraphFileCorruptedError(self._path, reason=reason) from e

        self._log.info(
            "graph_loaded",
            entity_count=len(graph.entities),
            relation_count=len(graph.relations),
        )
        return graph

    async def save(self, graph: KnowledgeGraph) -> None:
        """Write the graph to disk, creating the parent directory if needed.

        Raises:
            PermissionDeniedError: If the file or directory is not writable.
            StorageFullError: If the device is out of space.
            PersistenceWriteError: For any other write failure.
        """
        payload = json.dumps(graph.to_wire(), indent=2, ensure_ascii=False)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.1, max=self._retry_max_wait),
            retry=retry_if_exception(_is_transient_os_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await asyncio.to_thread(self._write, payload)
        except OSError as e:
            error = self._translate_write_error(e)
            self._log.error(
                "storage_write_failed",
                error_type=type(error).__name__,
                error_message=str(e),
            )
            raise error from e

        self._log.debug(
            "graph_saved",
            entity_count=len(graph.entities),
            relation_count=len(graph.relations),
        )

    def _write(self, payload: str) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)

        try:
            mode = stat.S_IMODE(self._path.stat().st_mode)
        except FileNotFoundError:
            mode = _default_file_mode()
        else:
            # The rename below would replace a read-only file.
            if not os.access(self._path, os.W_OK):
                raise PermissionError(errno.EACCES, "Permission denied", str(self._path))

        fd, tmp_name = tempfile.mkstemp(
            dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _translate_write_error(self, error: OSError) -> PersistenceWriteError:
        if error.errno in (errno.EACCES, errno.EPERM):
            return PermissionDeniedError(self._path)
        if error.errno == errno.ENOSPC:
            return StorageFullError(self._path)
        return PersistenceWriteError.from_os_error(self._path, error)


__all__ = ["DEFAULT_FILE_NAME", "JsonFileStorage", "resolve_storage_file"]
