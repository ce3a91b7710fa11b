# norgdo: task file parser
#
# Turns the text of a .norg task file into a Task:
#
#   * Title                       <- first heading line
#
#   Free text ...                 <- description, verbatim
#
#   - ( ) top-level item          <- depth 0
#   -- (x) nested item            <- depth 1 (one extra '-' per level)
#
# Only the subset of Neorg needed for titles, descriptions and TODO items is
# understood. Malformed TODO markers fail the whole parse.

import logging
import re
from typing import List, Optional, Tuple, Union

from .errors import InvalidNestingError, MissingTitleError, ParseError
from .schema import Task, TodoItem, TodoState

logger = logging.getLogger(__name__)

HEADING_MARKER = "*"
NESTING_CHAR = "-"

_HEADING_RE = re.compile(r"^\s*\*+\s+(\S.*?)\s*$")
# Any single character between the parentheses matches the shape; the glyph
# is validated separately so unknown markers are reported, not skipped.
_TODO_RE = re.compile(r"^\s*(-+)\s\((.)\)(?:\s+(.*?))?\s*$")


def parse(raw: Union[str, bytes], *, strict_nesting: bool = False) -> Task:
    """
    Parse task file content into a Task.

    Raises MissingTitleError, UnknownMarkerError, or (with strict_nesting)
    InvalidNestingError. Items nested more than one level below their
    predecessor are otherwise clamped to one level below it.
    """
    lines = _split_lines(_decode(raw))

    title, body_start = _find_title(lines)
    description, todo_start = _collect_description(lines, body_start)
    flat = _scan_todos(lines, todo_start)
    todos = _build_tree(flat, strict_nesting)

    return Task(title=title, description=description, todos=todos)


def is_todo_line(line: str) -> bool:
    return _TODO_RE.match(line) is not None


# ── Line handling ──────────────────────────────────────────────────────────

def _decode(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Task file is not valid UTF-8: {e}") from e
    return raw


def _split_lines(text: str) -> List[str]:
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def _find_title(lines: List[str]) -> Tuple[str, int]:
    """Return the title and the index of the line after the heading."""
    for index, line in enumerate(lines):
        if is_todo_line(line):
            raise MissingTitleError(
                f"line {index + 1}: TODO item found before any title heading"
            )
        match = _HEADING_RE.match(line)
        if match:
            return match.group(1), index + 1
        if line.strip():
            logger.debug(f"Skipping preamble line {index + 1}: {line!r}")
    raise MissingTitleError()


def _collect_description(lines: List[str], start: int) -> Tuple[str, int]:
    """Gather lines up to the first TODO item. Returns (description, todo_start)."""
    body: List[str] = []
    end = len(lines)
    for index in range(start, len(lines)):
        if is_todo_line(lines[index]):
            end = index
            break
        body.append(lines[index] if lines[index].strip() else "")

    while body and not body[0]:
        body.pop(0)
    while body and not body[-1]:
        body.pop()
    return "\n".join(body), end


def _scan_todos(lines: List[str], start: int) -> List[Tuple[int, int, TodoItem]]:
    """Flat (line_number, source_depth, item) list in document order."""
    flat = []
    for index in range(start, len(lines)):
        line = lines[index]
        match = _TODO_RE.match(line)
        if match is None:
            if line.strip():
                logger.debug(f"Dropping non-TODO line {index + 1} after TODO list: {line!r}")
            continue
        dashes, glyph, text = match.groups()
        state = TodoState.from_marker(glyph, line_number=index + 1)
        depth = len(dashes) - 1
        flat.append((index + 1, depth, TodoItem(state=state, text=text or "", depth=depth)))
    return flat


# ── Tree building ──────────────────────────────────────────────────────────

def _build_tree(flat: List[Tuple[int, int, TodoItem]], strict_nesting: bool) -> List[TodoItem]:
    """
    Nest the flat list: an item at depth d becomes a child of the most recent
    item at depth d-1. `open_items[d]` is that most recent item at depth d.
    """
    roots: List[TodoItem] = []
    open_items: List[TodoItem] = []

    for line_number, depth, item in flat:
        max_depth = len(open_items)
        if depth > max_depth:
            if strict_nesting:
                raise InvalidNestingError(line_number, depth, max_depth)
            logger.debug(
                f"line {line_number}: clamping TODO depth {depth} to {max_depth}"
            )
            depth = max_depth
        item.depth = depth

        del open_items[depth:]
        parent: Optional[TodoItem] = open_items[depth - 1] if depth else None
        if parent is None:
            roots.append(item)
        else:
            parent.children.append(item)
        open_items.append(item)

    return roots
