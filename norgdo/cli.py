"""
norgdo: console front end.

Usage:
    norgdo board                          # kanban board of all task files
    norgdo show Project_Setup             # one task with its todo tree
    norgdo new "Project Setup" -d "..." -t "Write README" -t "Add CI"
    norgdo set Project_Setup 0.1 done     # set a todo state and save
    norgdo cycle Project_Setup 2          # advance a todo to the next state
    norgdo add Project_Setup "Tag release" --parent 0
    norgdo rm Project_Setup 1
    norgdo search readme
    norgdo watch                          # redraw the board when files change
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .categorizer import summarize
from .config import Config
from .errors import NorgdoError
from .schema import Task, TodoItem, TodoState, format_path, parse_path
from .store import TaskStore
from .watcher import DirectoryWatcher

# ── Rendering ──────────────────────────────────────────────────────────────

def _task_line(task: Task) -> str:
    _, fraction, counts = summarize(task.states())
    return f"  {task.task_id:<24} {task.title}  [{counts.done}/{counts.total}, {float(fraction):.0%}]"


def render_board(store: TaskStore) -> List[str]:
    lines: List[str] = []
    for category, tasks in store.by_category().items():
        lines.append(f"{category.label.upper()} ({len(tasks)})")
        if not tasks:
            lines.append("  (empty)")
        lines.extend(_task_line(task) for task in tasks)
        lines.append("")
    for diag in store.diagnostics:
        lines.append(f"! {diag.message}")
    return lines


def render_tree(items: List[TodoItem], path: Optional[List[int]] = None) -> List[str]:
    lines: List[str] = []
    path = path or []
    for index, item in enumerate(items):
        item_path = path + [index]
        lines.append(
            f"{'  ' * item.depth}{format_path(item_path):<8} ({item.state.marker}) {item.text}"
        )
        lines.extend(render_tree(item.children, item_path))
    return lines


def render_task(task: Task) -> List[str]:
    lines = [task.title, "=" * len(task.title)]
    if task.description:
        lines.extend([task.description, ""])
    lines.extend(render_tree(task.todos) or ["(no todos)"])
    counts = task.counts
    lines.extend(["", f"{task.category.label}: {counts.done}/{counts.total} complete ({task.percent_complete:.0f}%)"])
    return lines


# ── Commands ───────────────────────────────────────────────────────────────

def _print(lines: List[str]) -> None:
    print("\n".join(lines))


def cmd_board(store: TaskStore, args) -> int:
    _print(render_board(store))
    return 0


def cmd_show(store: TaskStore, args) -> int:
    _print(render_task(store.get(args.task)))
    return 0


def cmd_new(store: TaskStore, args) -> int:
    task = store.create_task(args.title, args.description, args.todo)
    print(f"Created {task.task_id} ({task.source_path})")
    return 0


def cmd_set(store: TaskStore, args) -> int:
    item = store.update_todo_state(args.task, parse_path(args.path), TodoState.from_str(args.state))
    task = store.save(args.task)
    print(f"({item.state.marker}) {item.text} -> {task.category.label}")
    return 0


def cmd_cycle(store: TaskStore, args) -> int:
    item = store.cycle_todo_state(args.task, parse_path(args.path))
    task = store.save(args.task)
    print(f"({item.state.marker}) {item.text} [{item.state.label}] -> {task.category.label}")
    return 0


def cmd_add(store: TaskStore, args) -> int:
    parent = parse_path(args.parent) if args.parent else None
    _, path = store.add_todo(args.task, args.text, parent_path=parent)
    store.save(args.task)
    print(f"Added todo {format_path(path)}")
    return 0


def cmd_rm(store: TaskStore, args) -> int:
    item = store.remove_todo(args.task, parse_path(args.path))
    store.save(args.task)
    print(f"Removed ({item.state.marker}) {item.text}")
    return 0


def cmd_search(store: TaskStore, args) -> int:
    matches = store.search(args.query)
    _print([_task_line(task) for task in matches] or ["No matching tasks."])
    return 0


def cmd_watch(store: TaskStore, args, debounce_ms: int = 500) -> int:
    _print(render_board(store))
    with DirectoryWatcher(store, debounce_ms=debounce_ms) as watcher:
        try:
            while True:
                time.sleep(0.25)
                if watcher.poll():
                    print()
                    _print(render_board(store))
        except KeyboardInterrupt:
            print("\nStopping...")
    return 0


COMMANDS = {
    "board": cmd_board,
    "show": cmd_show,
    "new": cmd_new,
    "set": cmd_set,
    "cycle": cmd_cycle,
    "add": cmd_add,
    "rm": cmd_rm,
    "search": cmd_search,
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="norgdo",
        description="Kanban board derived from Neorg TODO files",
    )
    ap.add_argument("--config", default=None, help="Path to config.yaml")
    ap.add_argument("--data-dir", default=None, help="Directory holding .norg task files")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command")

    sub.add_parser("board", help="Show the kanban board")

    p = sub.add_parser("show", help="Show one task")
    p.add_argument("task")

    p = sub.add_parser("new", help="Create a task file")
    p.add_argument("title")
    p.add_argument("-d", "--description", default="")
    p.add_argument("-t", "--todo", action="append", default=[], help="Todo text (repeatable)")

    states = ", ".join(s.name.lower() for s in TodoState)
    p = sub.add_parser("set", help="Set a todo state and save")
    p.add_argument("task")
    p.add_argument("path", help="Todo path, e.g. 0 or 0.1")
    p.add_argument("state", help=f"One of: {states} (or a marker glyph)")

    p = sub.add_parser("cycle", help="Advance a todo to the next state and save")
    p.add_argument("task")
    p.add_argument("path")

    p = sub.add_parser("add", help="Append a todo and save")
    p.add_argument("task")
    p.add_argument("text")
    p.add_argument("--parent", default=None, help="Path of the parent todo")

    p = sub.add_parser("rm", help="Remove a todo (with its children) and save")
    p.add_argument("task")
    p.add_argument("path")

    p = sub.add_parser("search", help="Find tasks by text")
    p.add_argument("query")

    sub.add_parser("watch", help="Show the board and redraw on file changes")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = Config.load(args.config)
    if args.data_dir:
        cfg.data_dir = str(Path(args.data_dir).expanduser())

    level = logging.DEBUG if args.verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [norgdo] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    store = TaskStore.from_config(cfg)
    command = args.command or "board"
    try:
        store.load_all()
        if command == "watch":
            return cmd_watch(store, args, debounce_ms=cfg.watch_debounce_ms)
        return COMMANDS[command](store, args)
    except (NorgdoError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
