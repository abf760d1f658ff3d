"""Background task data models."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class TaskKind(Enum):
    """Kind of long-running job tracked by the task store."""
    UPLOAD_TRANSCRIPTION = "upload_transcription"


class TaskStatus(Enum):
    """Lifecycle status of a background task."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not TaskStatus.PROCESSING


@dataclass
class BackgroundTask:
    """A durable record tracking one long-running, UI-independent job."""
    id: str
    kind: TaskKind
    status: TaskStatus
    progress_text: str
    created_at_epoch_ms: int
    progress_percent: Optional[int] = None
    related_entity_id: Optional[str] = None
    error_message: Optional[str] = None

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.created_at_epoch_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        data['kind'] = self.kind.value
        data['status'] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackgroundTask":
        """Build a task from a dictionary produced by `to_dict`.

        Raises:
            KeyError, ValueError: If the record is missing fields or holds
                an unknown kind/status.
        """
        return cls(
            id=str(data['id']),
            kind=TaskKind(data['kind']),
            status=TaskStatus(data['status']),
            progress_text=data.get('progress_text', ''),
            created_at_epoch_ms=int(data['created_at_epoch_ms']),
            progress_percent=data.get('progress_percent'),
            related_entity_id=data.get('related_entity_id'),
            error_message=data.get('error_message'),
        )


@dataclass
class TaskPartition:
    """Tasks split by status for display."""
    active: Optional[BackgroundTask]
    completed: List[BackgroundTask]
    errors: List[BackgroundTask]

    @property
    def is_empty(self) -> bool:
        return self.active is None and not self.completed and not self.errors
