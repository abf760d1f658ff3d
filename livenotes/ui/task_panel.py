"""Terminal panel showing background task progress and results."""

import logging
from typing import List, Optional

from pubsub import pub
from rich.console import Console, Group
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from ..models.events import TASKS_CHANGED_TOPIC
from ..models.tasks import BackgroundTask, TaskPartition
from ..storage.task_store import BackgroundTaskStore

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred"


class TaskPanel:
    """Observer of the task store.

    The panel never caches task state between events: every change
    notification triggers a fresh read of the store, so tasks written by
    another call site (or collected as stale) show up on the next render.
    """

    def __init__(self, store: BackgroundTaskStore, console: Optional[Console] = None,
                 topic: str = TASKS_CHANGED_TOPIC):
        self.store = store
        self.console = console or Console()
        self.topic = topic
        self.partition = TaskPartition(active=None, completed=[], errors=[])
        self.change_count = 0

        pub.subscribe(self._on_tasks_changed, self.topic)
        self.refresh()

    def _on_tasks_changed(self, action: str, task_id: str) -> None:
        logger.debug(f"Task panel notified: {action} {task_id}")
        self.change_count += 1
        self.refresh()

    def refresh(self) -> TaskPartition:
        """Re-read the store."""
        self.partition = self.store.partition()
        return self.partition

    def dismiss(self, task_id: str) -> bool:
        """Remove a finished task from the store."""
        removed = self.store.remove(task_id)
        if not removed:
            # Store events already refresh on success
            self.refresh()
        return removed

    def build(self) -> Group:
        """Build the renderable for the current partition."""
        parts: List = []

        active = self.partition.active
        if active is not None:
            parts.append(Spinner("dots", text=Text(_progress_line(active), style="cyan")))

        for task in self.partition.completed:
            body = Text("Transcription complete", style="bold green")
            if task.related_entity_id:
                body.append(f"\nMeeting: {task.related_entity_id}", style="white")
            parts.append(Panel(body, title=task.id, border_style="green"))

        for task in self.partition.errors:
            body = Text(task.error_message or DEFAULT_ERROR_MESSAGE, style="bold red")
            parts.append(Panel(body, title=task.id, border_style="red"))

        if not parts:
            parts.append(Text("No background tasks", style="dim"))

        return Group(*parts)

    def render(self) -> None:
        """Print the panel to the console."""
        self.console.print(self.build())

    def close(self) -> None:
        if pub.isSubscribed(self._on_tasks_changed, self.topic):
            pub.unsubscribe(self._on_tasks_changed, self.topic)


def _progress_line(task: BackgroundTask) -> str:
    text = task.progress_text or "Processing..."
    if task.progress_percent is not None:
        return f"{text} ({task.progress_percent}%)"
    return text
