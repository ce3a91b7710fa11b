"""
Change notifications from the task store.

The store emits events after each successful operation; a front end
subscribes to redraw the board or show a status line. Callbacks run
synchronously on the caller's thread.

Event types and keyword arguments:
  todo_changed     task_id, todo_path, state (None when an item was removed)
  task_saved       task_id, category, progress
  task_created     task_id
  tasks_loaded     count, failures
  tasks_refreshed  diff
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

EVENT_TYPES = (
    "todo_changed",
    "task_saved",
    "task_created",
    "tasks_loaded",
    "tasks_refreshed",
)


class TaskEvents:
    """Routes store events to subscribed callbacks."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        self.subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: str, callback: Callable) -> None:
        callbacks = self.subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers. A failing callback does not stop the rest."""
        for callback in list(self.subscribers.get(event_type, [])):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception(f"Error in {event_type} callback")
