"""
Task document model.

A Task is one .norg file: a title, a free-text description and an ordered
tree of TODO items. Category and progress are derived from the TODO states
on every read and are never stored on the Task.

TODO state glyphs (the value of each TodoState member):
  ' ' undone   'x' done      '-' pending    '!' urgent
  '?' uncertain '=' on hold  '_' cancelled  '+' recurring
"""
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import NotFoundError, UnknownMarkerError


class TodoState(Enum):
    """State of a single TODO item. Member order is the cycling order."""
    UNDONE = " "
    DONE = "x"
    PENDING = "-"
    URGENT = "!"
    UNCERTAIN = "?"
    ON_HOLD = "="
    CANCELLED = "_"
    RECURRING = "+"

    @classmethod
    def from_marker(cls, char: str, line_number: Optional[int] = None) -> "TodoState":
        try:
            return cls(char)
        except ValueError:
            raise UnknownMarkerError(char, line_number) from None

    @classmethod
    def from_str(cls, value: str) -> "TodoState":
        """Accept a member name ("on-hold", "DONE") or a marker glyph."""
        if len(value) == 1:
            try:
                return cls(value)
            except ValueError:
                pass
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown TODO state: {value!r}") from None

    @property
    def marker(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]

    @property
    def is_completed(self) -> bool:
        return self in (TodoState.DONE, TodoState.CANCELLED)

    def next(self) -> "TodoState":
        members = list(TodoState)
        return members[(members.index(self) + 1) % len(members)]


_STATE_LABELS = {
    TodoState.UNDONE: "To Do",
    TodoState.DONE: "Done",
    TodoState.PENDING: "Pending",
    TodoState.URGENT: "Urgent",
    TodoState.UNCERTAIN: "Uncertain",
    TodoState.ON_HOLD: "On Hold",
    TodoState.CANCELLED: "Cancelled",
    TodoState.RECURRING: "Recurring",
}


class Category(Enum):
    """Kanban column a task lands in. Member order is the board column order."""
    YET_TO_BE_DONE = "yet_to_be_done"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return {
            Category.YET_TO_BE_DONE: "Yet to be Done",
            Category.IN_PROGRESS: "In Progress",
            Category.COMPLETED: "Completed",
        }[self]


@dataclass(frozen=True)
class TodoCounts:
    """Completed (done or cancelled) and total items over the flattened tree."""
    done: int
    total: int


@dataclass
class TodoItem:
    """One checklist line and the items nested under it."""
    state: TodoState
    text: str
    depth: int = 0
    children: List["TodoItem"] = field(default_factory=list)

    def walk(self) -> Iterator["TodoItem"]:
        """Yield this item and every descendant, depth-first in document order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def add_child(self, child: "TodoItem") -> "TodoItem":
        child.reindent(self.depth + 1)
        self.children.append(child)
        return child

    def reindent(self, depth: int) -> None:
        """Set this item's depth and shift the whole subtree to match."""
        self.depth = depth
        for child in self.children:
            child.reindent(depth + 1)


@dataclass
class Task:
    """
    A task file held in memory.

    task_id and source_path belong to the store and are excluded from
    equality: two Tasks are equal when title, description and todo tree match.
    """
    title: str
    description: str = ""
    todos: List[TodoItem] = field(default_factory=list)
    task_id: str = field(default="", compare=False)
    source_path: Optional[Path] = field(default=None, compare=False, repr=False)

    # ── Tree access ───────────────────────────────────────────

    def walk_todos(self) -> Iterator[TodoItem]:
        for root in self.todos:
            yield from root.walk()

    def flatten(self) -> List[Tuple[int, TodoState, str]]:
        return [(item.depth, item.state, item.text) for item in self.walk_todos()]

    def find_todo(self, path: Sequence[int]) -> TodoItem:
        """Resolve a todo path (root index, child index, ...) to its item."""
        if not path:
            raise NotFoundError(f"Empty todo path in task {self.task_id!r}")
        siblings = self.todos
        item = None
        for index in path:
            if index < 0 or index >= len(siblings):
                raise NotFoundError(
                    f"Todo path {format_path(path)} not found in task {self.task_id!r}"
                )
            item = siblings[index]
            siblings = item.children
        return item

    def siblings_of(self, path: Sequence[int]) -> List[TodoItem]:
        """Return the list that holds the item at `path` (validating the path)."""
        self.find_todo(path)
        if len(path) == 1:
            return self.todos
        return self.find_todo(path[:-1]).children

    # ── Derived fields ────────────────────────────────────────

    def states(self) -> List[TodoState]:
        return [item.state for item in self.walk_todos()]

    @property
    def category(self) -> Category:
        from .categorizer import categorize  # local import to avoid cycle
        return categorize(self.states())

    @property
    def progress(self) -> Fraction:
        from .categorizer import progress
        return progress(self.states())

    @property
    def counts(self) -> TodoCounts:
        from .categorizer import count_states
        return count_states(self.states())

    @property
    def percent_complete(self) -> float:
        return float(self.progress) * 100.0


def format_path(path: Sequence[int]) -> str:
    return ".".join(str(i) for i in path)


def parse_path(text: str) -> Tuple[int, ...]:
    """Parse a dotted todo path like "0.2.1". Raises ValueError on bad input."""
    parts = text.strip().split(".")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        raise ValueError(f"Invalid todo path: {text!r}") from None
