# norgdo: task file serializer
#
# Writes a Task back in the layout the parser reads:
#
#   * <title>
#   <blank>
#   <description>          (omitted with its blank line when empty)
#   <blank>
#   -{depth+1} (<glyph>) <text>
#
# parse(serialize(task)) == task for every task the parser produces, and a
# file already in this layout is reproduced byte-for-byte.

import logging
from pathlib import Path

from .errors import IoFailure
from .parser import HEADING_MARKER, NESTING_CHAR
from .schema import Task, TodoItem

logger = logging.getLogger(__name__)


def serialize(task: Task) -> str:
    lines = [f"{HEADING_MARKER} {task.title}", ""]
    if task.description:
        lines.extend([task.description, ""])
    for item in task.walk_todos():
        lines.append(format_todo_line(item))
    return "\n".join(lines).rstrip("\n") + "\n"


def format_todo_line(item: TodoItem) -> str:
    prefix = f"{NESTING_CHAR * (item.depth + 1)} ({item.state.marker})"
    return f"{prefix} {item.text}" if item.text else prefix


def write_task_file(task: Task, path: Path, atomic: bool = True) -> str:
    """
    Serialize `task` and write it to `path` as UTF-8. Returns the text written.

    With atomic=True the content goes to a sibling .tmp file that is renamed
    over the target, so a crash never leaves a half-written task file.
    """
    content = serialize(task)
    path = Path(path)
    tmp_file = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if atomic:
            with open(tmp_file, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
            tmp_file.replace(path)
        else:
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
    except OSError as e:
        if atomic and tmp_file.exists():
            try:
                tmp_file.unlink()
            except OSError as cleanup_error:
                logger.warning(f"Could not remove {tmp_file}: {cleanup_error}")
        raise IoFailure(f"Failed to write task file {path}: {e}", cause=e) from e
    logger.debug(f"Wrote {len(content)} chars to {path}")
    return content
