"""
Rule-based kanban categorizer.

A task's column depends only on the multiset of TODO states across its whole
tree (structure is ignored). Rules, first match wins:

  1. no items                              -> Yet to be Done
  2. every item done or cancelled          -> Completed
  3. every item undone, uncertain, on hold -> Yet to be Done
  4. anything else                         -> In Progress

Progress is the completed share (done + cancelled) of all items, 0 when
there are none.
"""
from fractions import Fraction
from typing import Iterable, Tuple

from .schema import Category, TodoCounts, TodoState


COMPLETED_STATES = frozenset({TodoState.DONE, TodoState.CANCELLED})
NOT_STARTED_STATES = frozenset({TodoState.UNDONE, TodoState.UNCERTAIN, TodoState.ON_HOLD})


def categorize(states: Iterable[TodoState]) -> Category:
    """Bucket a flattened collection of TODO states into a kanban category."""
    seen = set(states)
    if not seen:
        return Category.YET_TO_BE_DONE
    if seen <= COMPLETED_STATES:
        return Category.COMPLETED
    if seen <= NOT_STARTED_STATES:
        return Category.YET_TO_BE_DONE
    return Category.IN_PROGRESS


def progress(states: Iterable[TodoState]) -> Fraction:
    """Completed share of the items as an exact fraction in [0, 1]."""
    return _fraction(count_states(states))


def count_states(states: Iterable[TodoState]) -> TodoCounts:
    done = total = 0
    for state in states:
        total += 1
        if state in COMPLETED_STATES:
            done += 1
    return TodoCounts(done=done, total=total)


def summarize(states: Iterable[TodoState]) -> Tuple[Category, Fraction, TodoCounts]:
    """Category, progress and counts in one pass (for board rendering)."""
    states = list(states)
    counts = count_states(states)
    return categorize(states), _fraction(counts), counts


def _fraction(counts: TodoCounts) -> Fraction:
    if counts.total == 0:
        return Fraction(0)
    return Fraction(counts.done, counts.total)
