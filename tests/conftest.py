"""Shared fixtures for norgdo tests."""

import pytest

from norgdo.store import TaskStore


PROJECT_SETUP = """\
* Project Setup

Bootstrap the repository and tooling for the new service.

- ( ) Create repository
- (x) Choose license
- (-) Write README
- (!) Configure CI
- ( ) Set up linting
-- ( ) Pick formatter
-- ( ) Add pre-commit hook
- (_) Draft roadmap
"""

GROCERIES = """\
* Groceries

- (x) Milk
- (x) Bread
"""


@pytest.fixture
def project_setup_text():
    return PROJECT_SETUP


@pytest.fixture
def data_dir(tmp_path):
    """A data directory with two valid task files and one broken one."""
    d = tmp_path / "tasks"
    d.mkdir()
    (d / "project_setup.norg").write_text(PROJECT_SETUP, encoding="utf-8")
    (d / "groceries.norg").write_text(GROCERIES, encoding="utf-8")
    (d / "broken.norg").write_text("* Broken\n\n- (*) not a marker\n", encoding="utf-8")
    (d / "notes.txt").write_text("not a task file\n", encoding="utf-8")
    return d


@pytest.fixture
def store(data_dir):
    s = TaskStore(data_dir)
    s.load_all()
    return s


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep the user's real config and data directory out of tests."""
    monkeypatch.setenv("NORGDO_CONFIG", str(tmp_path / "no-such-config.yaml"))
    monkeypatch.delenv("NORGDO_DATA_DIR", raising=False)
