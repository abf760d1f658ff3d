"""Durable registry of long-running background tasks.

The store is shared by independent call sites: the job that owns a task
writes it, and any number of observers read it. Every read applies garbage
collection:

* tasks older than `max_age_seconds` are dropped whatever their status;
* tasks still `processing` after `stale_processing_seconds` are presumed
  abandoned (their owner most likely died mid-job) and dropped too.

The second rule is a liveness heuristic: a legitimately slow job that
outlives the stale bound disappears from the list as well.

Updates merge fields into one record by id, so concurrent writers of
different tasks never overwrite each other.
"""

import time
import random
import string
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

from pubsub import pub

from ..models.events import (
    TASKS_CHANGED_TOPIC,
    TASK_COLLECTED,
    TASK_CREATED,
    TASK_REMOVED,
    TASK_UPDATED,
)
from ..models.tasks import BackgroundTask, TaskKind, TaskPartition, TaskStatus
from .persistence import KeyValuePersistence

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "status",
    "progress_text",
    "progress_percent",
    "related_entity_id",
    "error_message",
})


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_task_id(now_ms: int) -> str:
    """Generate an id such as task_1718000000000_k3j9x0a1b."""
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"task_{now_ms}_{suffix}"


class BackgroundTaskStore:
    """Persisted registry of BackgroundTask records with stale-entry collection."""

    def __init__(self,
                 persistence: KeyValuePersistence,
                 max_age_seconds: float = 300.0,
                 stale_processing_seconds: float = 120.0,
                 clock_ms: Callable[[], int] = _now_ms,
                 topic: Optional[str] = TASKS_CHANGED_TOPIC):
        """Initialize task store and collect stale entries left by earlier runs.

        Args:
            persistence: Durable storage for task records
            max_age_seconds: Age after which any task is dropped
            stale_processing_seconds: Age after which a processing task is presumed abandoned
            clock_ms: Time source in epoch milliseconds
            topic: Pub/sub topic announcing changes, None to disable events
        """
        if max_age_seconds <= 0 or stale_processing_seconds <= 0:
            raise ValueError("Garbage collection bounds must be positive")

        self.persistence = persistence
        self.max_age_ms = int(max_age_seconds * 1000)
        self.stale_processing_ms = int(stale_processing_seconds * 1000)
        self.clock_ms = clock_ms
        self.topic = topic

        self.lock = threading.RLock()

        collected = self.collect_garbage()
        logger.info(f"BackgroundTaskStore initialized ({len(collected)} stale tasks collected)")

    def create(self, kind: TaskKind, initial_progress_text: str = "",
               progress_percent: Optional[int] = None) -> str:
        """Register a new processing task and persist it immediately.

        Returns:
            The new task id
        """
        now = self.clock_ms()
        with self.lock:
            task_id = generate_task_id(now)
            while self.persistence.get(task_id) is not None:
                task_id = generate_task_id(now)

            task = BackgroundTask(
                id=task_id,
                kind=kind,
                status=TaskStatus.PROCESSING,
                progress_text=initial_progress_text,
                created_at_epoch_ms=now,
                progress_percent=_clamp_percent(progress_percent),
            )
            self.persistence.put(task_id, task.to_dict())

        logger.info(f"Created task {task_id} ({kind.value}): {initial_progress_text}")
        self._publish(TASK_CREATED, task_id)
        return task_id

    def update(self, task_id: str, **fields: Any) -> Optional[BackgroundTask]:
        """Merge fields into an existing task.

        Terminal tasks keep their status: a later `processing` or a different
        terminal status is ignored, while the other fields still merge.

        Args:
            task_id: Task to update
            **fields: Any of status, progress_text, progress_percent,
                related_entity_id, error_message

        Returns:
            The updated task, or None if the id is unknown (no-op)

        Raises:
            ValueError: On unknown field names or an invalid status
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")

        if "status" in fields:
            fields["status"] = _coerce_status(fields["status"])
        if "progress_percent" in fields:
            fields["progress_percent"] = _clamp_percent(fields["progress_percent"])

        with self.lock:
            task = self._load(task_id)
            if task is None:
                logger.debug(f"Ignoring update of unknown task {task_id}")
                return None

            new_status = fields.pop("status", task.status)
            if task.status.is_terminal and new_status is not task.status:
                logger.warning(f"Task {task_id} is already {task.status.value}; "
                               f"ignoring transition to {new_status.value}")
            else:
                task.status = new_status

            for name, value in fields.items():
                setattr(task, name, value)

            self.persistence.put(task_id, task.to_dict())

        logger.debug(f"Updated task {task_id}: status={task.status.value}, progress='{task.progress_text}'")
        self._publish(TASK_UPDATED, task_id)
        return task

    def remove(self, task_id: str) -> bool:
        """Delete a task (user dismissal). Returns False if it did not exist."""
        with self.lock:
            removed = self.persistence.delete(task_id)

        if removed:
            logger.info(f"Removed task {task_id}")
            self._publish(TASK_REMOVED, task_id)
        return removed

    def get(self, task_id: str) -> Optional[BackgroundTask]:
        """Read one task, applying garbage collection first."""
        self.collect_garbage()
        return self._load(task_id)

    def list_all(self) -> List[BackgroundTask]:
        """Read every live task, oldest first."""
        self.collect_garbage()
        with self.lock:
            tasks = self._load_all()
        return sorted(tasks, key=lambda t: (t.created_at_epoch_ms, t.id))

    def collect_garbage(self) -> List[str]:
        """Drop expired and abandoned tasks.

        Returns:
            Ids of the dropped tasks
        """
        now = self.clock_ms()
        collected = []

        with self.lock:
            for task in self._load_all():
                age = task.age_ms(now)
                if age > self.max_age_ms:
                    reason = "expired"
                elif task.status is TaskStatus.PROCESSING and age > self.stale_processing_ms:
                    reason = "presumed abandoned"
                else:
                    continue

                if self.persistence.delete(task.id):
                    collected.append(task.id)
                    logger.info(f"Collected task {task.id} ({reason}, age {age / 1000:.0f}s)")

        for task_id in collected:
            self._publish(TASK_COLLECTED, task_id)
        return collected

    def clear_completed(self) -> int:
        """Remove every completed task. Returns how many were removed."""
        completed = [t.id for t in self.list_all() if t.status is TaskStatus.COMPLETED]
        return sum(1 for task_id in completed if self.remove(task_id))

    def get_active_task(self) -> Optional[BackgroundTask]:
        return next((t for t in self.list_all() if t.status is TaskStatus.PROCESSING), None)

    def has_active_tasks(self) -> bool:
        return self.get_active_task() is not None

    def has_completed_tasks(self) -> bool:
        return any(t.status is TaskStatus.COMPLETED for t in self.list_all())

    def partition(self) -> TaskPartition:
        """Split live tasks into the first active one, completed ones and failed ones."""
        tasks = self.list_all()
        return TaskPartition(
            active=next((t for t in tasks if t.status is TaskStatus.PROCESSING), None),
            completed=[t for t in tasks if t.status is TaskStatus.COMPLETED],
            errors=[t for t in tasks if t.status is TaskStatus.ERROR],
        )

    def _load(self, task_id: str) -> Optional[BackgroundTask]:
        try:
            record = self.persistence.get(task_id)
        except ValueError:
            return None
        return _parse(task_id, record) if record is not None else None

    def _load_all(self) -> List[BackgroundTask]:
        tasks = []
        for key, record in self.persistence.load_all().items():
            task = _parse(key, record)
            if task is not None:
                tasks.append(task)
        return tasks

    def _publish(self, action: str, task_id: str) -> None:
        if self.topic:
            pub.sendMessage(self.topic, action=action, task_id=task_id)


def _parse(key: str, record: Dict[str, Any]) -> Optional[BackgroundTask]:
    try:
        return BackgroundTask.from_dict(record)
    except (KeyError, ValueError, TypeError) as e:
        logger.warning(f"Skipping invalid task record {key}: {e}")
        return None


def _coerce_status(status: Union[TaskStatus, str]) -> TaskStatus:
    if isinstance(status, TaskStatus):
        return status
    try:
        return TaskStatus(status)
    except ValueError:
        raise ValueError(f"Invalid task status: {status!r}") from None


def _clamp_percent(percent: Optional[int]) -> Optional[int]:
    if percent is None:
        return None
    return max(0, min(100, int(percent)))
