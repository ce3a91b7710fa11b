"""Tests for the console front end."""
import pytest

from norgdo.cli import main


def _run(capsys, data_dir, *argv):
    code = main(["--data-dir", str(data_dir), *argv])
    out, err = capsys.readouterr()
    return code, out, err


def test_board(capsys, data_dir):
    code, out, _ = _run(capsys, data_dir, "board")
    assert code == 0
    assert "YET TO BE DONE (0)" in out
    assert "IN PROGRESS (1)" in out
    assert "COMPLETED (1)" in out
    assert "project_setup" in out
    assert "[2/8, 25%]" in out
    assert "broken.norg" in out


def test_default_command_is_board(capsys, data_dir):
    code, out, _ = _run(capsys, data_dir)
    assert code == 0
    assert "IN PROGRESS" in out


def test_show(capsys, data_dir):
    code, out, _ = _run(capsys, data_dir, "show", "project_setup")
    assert code == 0
    assert "Project Setup" in out
    assert "4.1" in out
    assert "(_) Draft roadmap" in out
    assert "In Progress: 2/8 complete (25%)" in out


def test_set_saves(capsys, data_dir):
    code, out, _ = _run(capsys, data_dir, "set", "groceries", "1", "pending")
    assert code == 0
    assert "In Progress" in out
    assert "- (-) Bread" in (data_dir / "groceries.norg").read_text()


def test_cycle_saves(capsys, data_dir):
    code, _, _ = _run(capsys, data_dir, "cycle", "groceries", "0")
    assert code == 0
    assert "- (-) Milk" in (data_dir / "groceries.norg").read_text()


def test_new_rejects_todo_shaped_description(capsys, data_dir):
    code, _, err = _run(capsys, data_dir, "new", "Legal", "-d", "Notes\n-- (c) 2024 Example Corp")
    assert code == 1
    assert "error:" in err
    assert not (data_dir / "Legal.norg").exists()


def test_new_add_rm(capsys, data_dir):
    code, out, _ = _run(capsys, data_dir, "new", "Write docs", "-d", "User guide", "-t", "Outline")
    assert code == 0
    assert "Created Write_docs" in out

    code, out, _ = _run(capsys, data_dir, "add", "Write_docs", "Screenshots", "--parent", "0")
    assert code == 0
    assert "Added todo 0.0" in out
    assert (data_dir / "Write_docs.norg").read_text() == (
        "* Write docs\n\nUser guide\n\n- ( ) Outline\n-- ( ) Screenshots\n"
    )

    code, _, _ = _run(capsys, data_dir, "rm", "Write_docs", "0")
    assert code == 0
    assert (data_dir / "Write_docs.norg").read_text() == "* Write docs\n\nUser guide\n"


def test_search(capsys, data_dir):
    code, out, _ = _run(capsys, data_dir, "search", "milk")
    assert code == 0
    assert "groceries" in out


@pytest.mark.parametrize("argv", [
    ("show", "missing"),
    ("set", "groceries", "7", "done"),
    ("set", "groceries", "0", "finished"),
    ("set", "groceries", "a.b", "done"),
])
def test_errors_exit_nonzero(capsys, data_dir, argv):
    code, _, err = _run(capsys, data_dir, *argv)
    assert code == 1
    assert "error:" in err
