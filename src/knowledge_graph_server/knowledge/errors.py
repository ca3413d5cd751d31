"""Typed errors raised by the knowledge graph core and its storage backends.

Every error carries an English ``message`` (what the caller sees in the
``error`` field of a failed tool result) and a Korean ``localized_message``
(surfaced as ``errorDetailInUserLocale`` when the Korean locale is enabled).
Messages always name the offending value: entity names, file paths.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Coarse error categories exposed at the tool-call boundary."""

    VALIDATION = "validation_error"
    EMPTY_NAME = "empty_name"
    DUPLICATE_ENTITY = "duplicate_entity"
    ENTITIES_NOT_FOUND = "entities_not_found"
    PERSISTENCE_READ = "persistence_read_error"
    PERSISTENCE_WRITE = "persistence_write_error"


def _quote_names(names: list[str]) -> str:
    return "[" + ", ".join(f'"{name}"' for name in names) + "]"


class KnowledgeGraphError(Exception):
    """Base class for all knowledge graph errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, localized_message: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.localized_message = localized_message


class ToolArgumentError(KnowledgeGraphError):
    """Malformed, missing or wrongly typed tool arguments.

    Raised by the tool boundary only; the manager is never invoked.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(f"Invalid arguments: {message}", f"잘못된 인자: {message}")
        self.details = details or []


class EmptyNameError(KnowledgeGraphError):
    """An entity name is empty or whitespace only."""

    kind = ErrorKind.EMPTY_NAME

    def __init__(self) -> None:
        super().__init__(
            "Entity name cannot be empty",
            "엔티티 이름은 비어있을 수 없습니다",
        )


class DuplicateEntityError(KnowledgeGraphError):
    """An entity with the given name already exists."""

    kind = ErrorKind.DUPLICATE_ENTITY

    def __init__(self, name: str) -> None:
        super().__init__(
            f'Entity with name "{name}" already exists',
            f'"{name}" 이름을 가진 엔티티가 이미 존재합니다',
        )
        self.name = name


class EntitiesNotFoundError(KnowledgeGraphError):
    """One or more referenced entities do not exist."""

    kind = ErrorKind.ENTITIES_NOT_FOUND

    def __init__(self, names: list[str]) -> None:
        quoted = _quote_names(names)
        super().__init__(
            f"Entities not found: {quoted}",
            f"다음 엔티티를 찾을 수 없습니다: {quoted}",
        )
        self.names = list(names)


class PersistenceError(KnowledgeGraphError):
    """Base class for storage backend failures. Carries the target path."""

    def __init__(self, message: str, localized_message: str, path: Path | str) -> None:
        super().__init__(message, localized_message)
        self.path = Path(path)


class PersistenceReadError(PersistenceError):
    """The graph could not be loaded from storage."""

    kind = ErrorKind.PERSISTENCE_READ

    @classmethod
    def from_os_error(cls, path: Path, error: OSError) -> PersistenceReadError:
        detail = error.strerror or str(error)
        return cls(
            f"Failed to load graph from {path}: {detail}",
            f"그래프 로드 실패 ({path}): {detail}",
            path,
        )


class GraphFileCorruptedError(PersistenceReadError):
    """The storage file exists but does not contain a valid graph document."""

    def __init__(self, path: Path | str, reason: str = "Invalid JSON format") -> None:
        super().__init__(
            f"Failed to parse storage file: {reason} at {path}",
            f"저장 파일을 읽을 수 없습니다: 잘못된 JSON 형식 ({path})",
            path,
        )
        self.reason = reason


class PersistenceWriteError(PersistenceError):
    """The graph could not be written to storage."""

    kind = ErrorKind.PERSISTENCE_WRITE

    @classmethod
    def from_os_error(cls, path: Path, error: OSError) -> PersistenceWriteError:
        detail = error.strerror or str(error)
        return cls(
            f"Failed to save graph to {path}: {detail}",
            f"그래프 저장 실패 ({path}): {detail}",
            path,
        )


class PermissionDeniedError(PersistenceWriteError):
    """The process may not write the storage file or its directory."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(
            f"Permission denied: Cannot write to {path}",
            f"권한 거부: {path}에 쓸 수 없습니다",
            path,
        )


class StorageFullError(PersistenceWriteError):
    """The device holding the storage file has no space left."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(
            f"No space left on device: Cannot save graph to {path}",
            f"디스크 공간 부족: {path}에 그래프를 저장할 수 없습니다",
            path,
        )


__all__ = [
    "ErrorKind",
    "KnowledgeGraphError",
    "ToolArgumentError",
    "EmptyNameError",
    "DuplicateEntityError",
    "EntitiesNotFoundError",
    "PersistenceError",
    "PersistenceReadError",
    "GraphFileCorruptedError",
    "PersistenceWriteError",
    "PermissionDeniedError",
    "StorageFullError",
]
