"""Tests for writing tasks back to .norg text."""
import pytest

from norgdo.errors import IoFailure
from norgdo.parser import parse
from norgdo.schema import Task, TodoItem, TodoState
from norgdo.serializer import format_todo_line, serialize, write_task_file


def test_canonical_file_reproduced_byte_for_byte(project_setup_text):
    assert serialize(parse(project_setup_text)) == project_setup_text


def test_layout_without_description():
    task = Task(title="T", todos=[TodoItem(TodoState.DONE, "a")])
    assert serialize(task) == "* T\n\n- (x) a\n"


def test_layout_title_only():
    assert serialize(Task(title="Lonely")) == "* Lonely\n"


def test_description_without_todos():
    assert serialize(Task(title="T", description="Line one\n\nLine two")) == "* T\n\nLine one\n\nLine two\n"


def test_nested_lines_use_one_dash_per_level():
    child = TodoItem(TodoState.PENDING, "child", depth=1,
                     children=[TodoItem(TodoState.URGENT, "grandchild", depth=2)])
    task = Task(title="T", todos=[TodoItem(TodoState.UNDONE, "root", children=[child])])
    assert serialize(task).splitlines()[2:] == [
        "- ( ) root",
        "-- (-) child",
        "--- (!) grandchild",
    ]


def test_empty_text_has_no_trailing_space():
    assert format_todo_line(TodoItem(TodoState.ON_HOLD, "")) == "- (=)"


@pytest.mark.parametrize("text", [
    "* T\n- ( ) a\n-- ( ) b\n-- ( ) c\n- ( ) d\n",
    "@meta\n\n* Messy   \n\n\n  desc with indent\n\n\n\nmore\n\n- (x) a\n   --- (?) jump\n\ntrailing junk\n",
    "* T\r\n- (+) weekly review\r\n-- (_) skipped\r\n",
    "** Only a title",
    "* T\n- ( )\n-- (x)\n",
])
def test_round_trip(text):
    task = parse(text)
    assert parse(serialize(task)) == task
    assert parse(serialize(task)).flatten() == task.flatten()


def test_round_trip_is_stable_after_first_normalization():
    messy = "* T  \n\n\ndesc\n\n- (x)   a  \n    -- ( ) b\n"
    once = serialize(parse(messy))
    assert serialize(parse(once)) == once


def test_single_state_edit_changes_single_line(project_setup_text):
    task = parse(project_setup_text)
    task.todos[4].children[1].state = TodoState.DONE

    before = project_setup_text.splitlines()
    after = serialize(task).splitlines()
    changed = [i for i, (a, b) in enumerate(zip(before, after)) if a != b]
    assert len(before) == len(after)
    assert changed == [10]
    assert after[10] == "-- (x) Add pre-commit hook"


class TestWriteTaskFile:
    """File persistence."""

    def test_atomic_write(self, tmp_path, project_setup_text):
        path = tmp_path / "sub" / "project.norg"
        written = write_task_file(parse(project_setup_text), path)
        assert path.read_text(encoding="utf-8") == written == project_setup_text
        assert list(path.parent.glob("*.tmp")) == []

    def test_plain_write_overwrites(self, tmp_path):
        path = tmp_path / "t.norg"
        path.write_text("old content that is much longer than the new one\n" * 5)
        write_task_file(Task(title="New"), path, atomic=False)
        assert path.read_text(encoding="utf-8") == "* New\n"

    def test_write_failure_raises_io_failure(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        with pytest.raises(IoFailure) as exc_info:
            write_task_file(Task(title="T"), blocker / "t.norg")
        assert isinstance(exc_info.value.cause, OSError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_failed_rename_removes_tmp_file(self, tmp_path):
        path = tmp_path / "t.norg"
        path.mkdir()
        (path / "keep").write_text("")
        with pytest.raises(IoFailure):
            write_task_file(Task(title="T"), path)
        assert list(tmp_path.glob("*.tmp")) == []
        assert path.is_dir()
