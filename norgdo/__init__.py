# norgdo: kanban board derived from Neorg TODO files
#
# Components:
#   schema.py      - Data model (Task, TodoItem, TodoState, Category)
#   parser.py      - .norg text -> Task
#   serializer.py  - Task -> .norg text, atomic file writes
#   categorizer.py - Rule-based kanban categorization and progress
#   store.py       - Directory-backed task store
#   events.py      - Store change notifications
#   watcher.py     - Data directory change detection (watchdog)
#   config.py      - YAML configuration

from .categorizer import categorize, progress
from .errors import (
    InvalidNestingError,
    IoFailure,
    MissingTitleError,
    NorgdoError,
    NotFoundError,
    ParseError,
    UnknownMarkerError,
)
from .parser import parse
from .schema import Category, Task, TodoCounts, TodoItem, TodoState
from .serializer import serialize
from .store import LoadDiagnostic, StoreDiff, TaskStore

__version__ = "0.1.0"
