"""
Task store: the in-memory index of task files.

Loads every task file in the data directory, keeps the parsed Tasks keyed by
task id (the file stem), applies in-memory edits, and writes a task back to
its file only when save() is called.

Provides lookup, search, and category grouping for the board.
"""
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import IoFailure, MissingTitleError, NorgdoError, NotFoundError
from .events import TaskEvents
from .parser import is_todo_line, parse
from .schema import Category, Task, TodoItem, TodoState, format_path
from .serializer import serialize, write_task_file

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "norgdo"

Source = Tuple[Union[str, Path], Union[str, bytes]]


@dataclass
class LoadDiagnostic:
    """One task file that could not be loaded."""
    path: Path
    error: NorgdoError

    @property
    def message(self) -> str:
        return f"{self.path}: {self.error}"


@dataclass
class StoreDiff:
    """Task ids that appeared, disappeared or changed during a refresh."""
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.added or self.removed or self.changed)


def _sanitize_filename(title: str) -> str:
    name = re.sub(r"[^A-Za-z0-9_-]", "_", title).strip("_")
    return name or "task"


def _normalize_description(description: str) -> str:
    lines = [line if line.strip() else "" for line in description.replace("\r\n", "\n").replace("\r", "\n").split("\n")]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def _single_line(text: str) -> str:
    return " ".join(text.split())


def _check_description(description: str) -> None:
    for line in description.split("\n"):
        if is_todo_line(line):
            raise ValueError(f"Description line would be read back as a todo: {line.strip()!r}")


class TaskStore:
    """Directory-backed store of Tasks. Sole owner of every Task it holds."""

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        extension: str = ".norg",
        strict_nesting: bool = False,
        atomic_writes: bool = True,
        events: Optional[TaskEvents] = None,
    ):
        self.data_dir = Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR
        self.extension = extension if extension.startswith(".") else f".{extension}"
        self.strict_nesting = strict_nesting
        self.atomic_writes = atomic_writes
        self.events = events or TaskEvents()
        self.diagnostics: List[LoadDiagnostic] = []
        self._tasks: Dict[str, Task] = {}
        self._persisted: Dict[str, str] = {}  # task_id -> text last read/written

    @classmethod
    def from_config(cls, cfg, events: Optional[TaskEvents] = None) -> "TaskStore":
        return cls(
            data_dir=cfg.data_dir,
            extension=cfg.extension,
            strict_nesting=cfg.strict_nesting,
            atomic_writes=cfg.atomic_writes,
            events=events,
        )

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Loading
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def load_all(self, directory: Optional[Union[str, Path]] = None) -> List[Task]:
        """
        Load every task file in `directory` (default: the data directory).

        Files that cannot be read or parsed are recorded in `diagnostics`
        and left out; they never abort the load.
        """
        if directory is not None:
            self.data_dir = Path(directory).expanduser()

        sources: List[Source] = []
        failures: List[LoadDiagnostic] = []
        if not self.data_dir.is_dir():
            logger.info(f"Data directory {self.data_dir} does not exist, board is empty")
        else:
            for path in sorted(self.data_dir.glob(f"*{self.extension}")):
                if not path.is_file():
                    continue
                try:
                    sources.append((path, path.read_bytes()))
                except OSError as e:
                    failures.append(
                        LoadDiagnostic(path, IoFailure(f"Failed to read {path}: {e}", cause=e))
                    )

        return self._index(sources, failures)

    def load_sources(self, sources: Iterable[Source]) -> List[Task]:
        """Parse (identifier, raw content) pairs and replace the index with the result."""
        return self._index(sources, [])

    def _index(self, sources: Iterable[Source], failures: List[LoadDiagnostic]) -> List[Task]:
        tasks: Dict[str, Task] = {}
        persisted: Dict[str, str] = {}

        for identifier, raw in sources:
            path = Path(identifier)
            try:
                task = parse(raw, strict_nesting=self.strict_nesting)
            except NorgdoError as e:
                failures.append(LoadDiagnostic(path, e))
                continue
            task.task_id = self._unique_id(path.stem, taken=tasks)
            task.source_path = path
            tasks[task.task_id] = task
            persisted[task.task_id] = serialize(task)

        for diag in failures:
            logger.warning(f"Failed to load task file {diag.message}")

        self._tasks = tasks
        self._persisted = persisted
        self.diagnostics = failures
        logger.info(f"Loaded {len(tasks)} tasks ({len(failures)} failed)")
        self.events.emit("tasks_loaded", count=len(tasks), failures=len(failures))
        return self.list()

    def refresh(self) -> StoreDiff:
        """Reload the data directory and report what changed against the current index."""
        previous = dict(self._tasks)
        dirty = [task_id for task_id in previous if self.is_dirty(task_id)]
        if dirty:
            logger.warning(f"Refresh discards unsaved changes in: {', '.join(dirty)}")

        self.load_all()

        diff = StoreDiff(
            added=[tid for tid in self._tasks if tid not in previous],
            removed=[tid for tid in previous if tid not in self._tasks],
            changed=[
                tid for tid, task in self._tasks.items()
                if tid in previous and previous[tid] != task
            ],
        )
        if diff:
            logger.info(
                f"Refresh: {len(diff.added)} added, {len(diff.removed)} removed, "
                f"{len(diff.changed)} changed"
            )
        self.events.emit("tasks_refreshed", diff=diff)
        return diff

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Queries
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def list(self) -> List[Task]:
        """All tasks in load order."""
        return list(self._tasks.values())

    def get(self, task_id: str) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise NotFoundError(f"Task {task_id!r} not found") from None

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def by_category(self) -> Dict[Category, List[Task]]:
        """Tasks grouped into board columns. Every category is present."""
        columns: Dict[Category, List[Task]] = {category: [] for category in Category}
        for task in self._tasks.values():
            columns[task.category].append(task)
        return columns

    def search(self, query: str) -> List[Task]:
        """Tasks whose title, description or any todo text contains `query` (case-insensitive)."""
        needle = query.lower()
        return [
            task for task in self._tasks.values()
            if needle in task.title.lower()
            or needle in task.description.lower()
            or any(needle in item.text.lower() for item in task.walk_todos())
        ]

    def get_todo(self, task_id: str, todo_path: Sequence[int]) -> TodoItem:
        return self.get(task_id).find_todo(tuple(todo_path))

    def is_dirty(self, task_id: str) -> bool:
        """True when the in-memory task differs from what was last read or written."""
        return serialize(self.get(task_id)) != self._persisted.get(task_id)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # In-memory edits (persist with save())
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def update_todo_state(self, task_id: str, todo_path: Sequence[int], new_state: TodoState) -> TodoItem:
        """Set one todo's state in memory. Raises NotFoundError for a bad id or path."""
        if not isinstance(new_state, TodoState):
            raise TypeError(f"Expected TodoState, got {type(new_state).__name__}")
        todo_path = tuple(todo_path)
        item = self.get_todo(task_id, todo_path)
        item.state = new_state
        logger.debug(f"{task_id} [{format_path(todo_path)}] -> {new_state.label}")
        self.events.emit("todo_changed", task_id=task_id, todo_path=todo_path, state=new_state)
        return item

    def cycle_todo_state(self, task_id: str, todo_path: Sequence[int]) -> TodoItem:
        """Advance a todo to the next state in the fixed cycling order."""
        item = self.get_todo(task_id, todo_path)
        return self.update_todo_state(task_id, todo_path, item.state.next())

    def add_todo(
        self,
        task_id: str,
        text: str,
        parent_path: Optional[Sequence[int]] = None,
        state: TodoState = TodoState.UNDONE,
    ) -> Tuple[TodoItem, Tuple[int, ...]]:
        """Append a todo to the task roots or under `parent_path`. Returns (item, path)."""
        text = _single_line(text)
        if not text:
            raise ValueError("Todo text must not be empty")
        task = self.get(task_id)
        item = TodoItem(state=state, text=text)
        if parent_path:
            parent_path = tuple(parent_path)
            parent = task.find_todo(parent_path)
            parent.add_child(item)
            path = parent_path + (len(parent.children) - 1,)
        else:
            task.todos.append(item)
            path = (len(task.todos) - 1,)
        self.events.emit("todo_changed", task_id=task_id, todo_path=path, state=state)
        return item, path

    def remove_todo(self, task_id: str, todo_path: Sequence[int]) -> TodoItem:
        """Remove a todo and its whole subtree."""
        todo_path = tuple(todo_path)
        siblings = self.get(task_id).siblings_of(todo_path)
        item = siblings.pop(todo_path[-1])
        self.events.emit("todo_changed", task_id=task_id, todo_path=todo_path, state=None)
        return item

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # Persistence
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def save(self, task_id: str) -> Task:
        """Write the in-memory task over its backing file. Raises IoFailure on write errors."""
        task = self.get(task_id)
        path = task.source_path or self._path_for(task_id)
        self._persisted[task_id] = write_task_file(task, path, atomic=self.atomic_writes)
        task.source_path = path

        category, progress = task.category, task.progress
        logger.info(f"Saved {task_id}: {category.label}, {float(progress):.0%} complete")
        self.events.emit("task_saved", task_id=task_id, category=category, progress=progress)
        return task

    def create_task(self, title: str, description: str = "", todo_texts: Iterable[str] = ()) -> Task:
        """
        Create a task file from wizard input and add it to the store.

        Every todo starts undone at the top level; blank todo texts are skipped.
        The file name is derived from the title and made unique in the data
        directory. Description lines shaped like todo items raise ValueError.
        """
        title = _single_line(title)
        if not title:
            raise MissingTitleError("Task title must not be empty")

        description = _normalize_description(description)
        _check_description(description)
        todos = [
            TodoItem(state=TodoState.UNDONE, text=_single_line(text))
            for text in todo_texts if text.strip()
        ]
        task_id = self._unique_id(_sanitize_filename(title), taken=self._tasks, check_disk=True)
        task = Task(
            title=title,
            description=description,
            todos=todos,
            task_id=task_id,
            source_path=self._path_for(task_id),
        )

        self._persisted[task_id] = write_task_file(task, task.source_path, atomic=self.atomic_writes)
        self._tasks[task_id] = task
        logger.info(f"Created task {task_id} with {len(todos)} todos at {task.source_path}")
        self.events.emit("task_created", task_id=task_id)
        return task

    # ── helpers ───────────────────────────────────────────────

    def _path_for(self, task_id: str) -> Path:
        return self.data_dir / f"{task_id}{self.extension}"

    def _unique_id(self, base: str, taken: Dict[str, Task], check_disk: bool = False) -> str:
        """`base`, or `base_2`, `base_3`, ... if the id (or with check_disk, its file) is taken."""
        candidate, n = base, 1
        while candidate in taken or (check_disk and self._path_for(candidate).exists()):
            n += 1
            candidate = f"{base}_{n}"
        return candidate
