import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from documents.domain.entities import Document
from versions.domain.entities import DocumentVersion


class AutosaveState(StrEnum):
    IDLE = "idle"
    DIRTY = "dirty"
    SAVING = "saving"
    ERROR = "error"


class NoticeKind(StrEnum):
    SAVED = "saved"
    VERSION_PENDING = "version_pending"
    CHANGED_ELSEWHERE = "changed_elsewhere"
    SAVE_FAILED = "save_failed"


@dataclass(frozen=True)
class SaveRequest:
    document_id: UUID
    user_id: UUID
    title: str
    content: dict[str, Any]
    commit_id: UUID = field(default_factory=uuid4)
    expected_updated_at: datetime | None = None


@dataclass
class SaveResult:
    document: Document
    version: DocumentVersion | None
    changed_elsewhere: bool = False

    @property
    def version_pending(self) -> bool:
        return self.version is None


@dataclass(frozen=True)
class AutosaveNotice:
    kind: NoticeKind
    document_id: UUID
    message: str = ""
    version_number: int | None = None


@dataclass
class EditingSession:
    """Local editing state of one open document, owned by one scheduler.

    ``revision`` counts local edits; ``saved_revision`` is the last revision
    known to be durable. Edits made while a save is running keep the session
    dirty once that save completes.
    """

    document_id: UUID
    user_id: UUID
    title: str
    content: dict[str, Any]
    last_known_updated_at: datetime | None = None
    state: AutosaveState = AutosaveState.IDLE
    revision: int = 0
    saved_revision: int = 0
    saving_revision: int | None = None
    last_error: str | None = None

    @property
    def has_unsaved_changes(self) -> bool:
        return self.revision > self.saved_revision

    def record_edit(self, title: str, content: dict[str, Any]) -> None:
        self.title = title
        self.content = copy.deepcopy(content)
        self.revision += 1
        if self.state is not AutosaveState.SAVING:
            self.state = AutosaveState.DIRTY

    def begin_save(self) -> SaveRequest:
        if self.state is AutosaveState.SAVING:
            raise RuntimeError("A save is already in progress")
        self.state = AutosaveState.SAVING
        self.saving_revision = self.revision
        return SaveRequest(
            document_id=self.document_id,
            user_id=self.user_id,
            title=self.title,
            content=copy.deepcopy(self.content),
            expected_updated_at=self.last_known_updated_at,
        )

    def complete_save(self, result: SaveResult) -> None:
        self.saved_revision = max(self.saved_revision, self.saving_revision or 0)
        self.saving_revision = None
        self.last_known_updated_at = result.document.updated_at
        self.last_error = None
        self.state = AutosaveState.DIRTY if self.has_unsaved_changes else AutosaveState.IDLE

    def fail_save(self, error: str) -> None:
        self.saving_revision = None
        self.last_error = error
        self.state = AutosaveState.ERROR
