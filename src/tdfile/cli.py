"""td-file CLI: show and edit the ``:td`` todo blocks of a text file.

Installed as ``td-file`` console_script via pipx / pip.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.markup import escape

from tdfile import __version__
from tdfile import log
from tdfile.config import MARKER, load_config, resolve_todo_path
from tdfile.errors import TdFileError
from tdfile.session import Session
from tdfile.sync import FileSynchronizer
from tdfile.todos import ops
from tdfile.todos.model import DisplayRow, TodoState


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

STATE_CHOICES: dict[str, TodoState] = {
    "incomplete": TodoState.INCOMPLETE,
    "complete": TodoState.COMPLETED,
    "cancel": TodoState.CANCELLED,
    "push": TodoState.PUSHED,
}

_STATE_ICONS: dict[TodoState, str] = {
    TodoState.INCOMPLETE: "○",
    TodoState.COMPLETED: "✔",
    TodoState.CANCELLED: "✗",
    TodoState.PUSHED: "➤",
}

_STATE_STYLES: dict[TodoState, str] = {
    TodoState.INCOMPLETE: "white",
    TodoState.COMPLETED: "yellow dim",
    TodoState.CANCELLED: "bright_black strike",
    TodoState.PUSHED: "bright_black dim",
}

_HIGHLIGHT_STYLE = "bold bright_blue"


# ── Rendering ────────────────────────────────────────────────────────


def format_row(row: DisplayRow) -> str:
    """Rich markup for one tree row, e.g. ``"  ▾ ○ Parent *"``."""
    node = row.node
    record = node.record
    fold = "  "
    if node.children:
        fold = "▸ " if node.collapsed else "▾ "
    text = escape(record.text)
    if record.highlighted:
        text += " *"
    style = _HIGHLIGHT_STYLE if record.highlighted else _STATE_STYLES[record.state]
    ident = f"[dim]{record.id:>4}[/dim]"
    return f"{ident} {'  ' * row.depth}{fold}[{style}]{_STATE_ICONS[record.state]} {text}[/]"


def print_session(session: Session) -> None:
    for w in session.warnings:
        log.warn(w)
    if session.error:
        log.error(session.error)
    rows = session.rows()
    if not rows:
        log.console.print("No todos found.")
        return
    for row in rows:
        log.console.print(format_row(row))


# ── Startup ──────────────────────────────────────────────────────────


def _resolve_path(todo_file: str) -> Path:
    if todo_file:
        log.debug(f"Using todo file from flag: {todo_file}")
        return Path(todo_file).expanduser()
    return resolve_todo_path(load_config())


def _open_session(ctx: click.Context) -> tuple[Session, FileSynchronizer]:
    """Load the todo file named on the command line or in the config."""
    path: Path = ctx.obj["path"]
    sync = FileSynchronizer(path)
    session = Session(path, saver=sync.write_now)
    try:
        session.load()
    except (OSError, ValueError) as e:
        log.error(f"Error reading todo file: {e}")
        sys.exit(1)
    if session.block_count == 0:
        log.info(f"No {MARKER} blocks found. No todos in scope.")
        ctx.exit(0)
    return session, sync


def _single_line(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return ops.check_text(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _run_edit(ctx: click.Context, action) -> None:
    session, _ = _open_session(ctx)
    try:
        action(session)
    except KeyError as e:
        raise click.BadParameter(str(e.args[0]), param_hint="ID") from e
    except (OSError, UnicodeDecodeError) as e:
        log.error(f"Failed to write {session.path}: {e}")
        sys.exit(1)
    print_session(session)


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.option("-f", "--todo-file", default="", help="Path to todo file (overrides config)")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="td-file")
@click.pass_context
def main(ctx: click.Context, todo_file: str, verbose: bool) -> None:
    """td-file: a todo tree living inside ``:td`` blocks of a text file.

    \b
    EXAMPLES:
      td-file                        # Show today's todo file from config
      td-file -f notes.md show       # Show a specific file
      td-file -f notes.md set 3 complete
      td-file -f notes.md add "Write tests" --under 1
      td-file -f notes.md watch      # Re-print on every change
    """
    log.set_verbose(verbose)

    try:
        path = _resolve_path(todo_file)
    except TdFileError as e:
        log.error(f"Failed to resolve todo path: {e}")
        sys.exit(1)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log.error(f"Failed to create todo directory: {e}")
        sys.exit(1)

    if not path.exists():
        log.error(f"Todo file '{path}' does not exist. Please create it and restart the app.")
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["path"] = path

    if ctx.invoked_subcommand is None:
        ctx.invoke(show)


# ── Subcommands ──────────────────────────────────────────────────────


@main.command()
@click.option("--collapse", "collapse_ids", type=int, multiple=True, help="Hide the children of this id")
@click.pass_context
def show(ctx: click.Context, collapse_ids: tuple[int, ...]) -> None:
    """Print the todo tree."""
    session, _ = _open_session(ctx)
    for node_id in collapse_ids:
        try:
            session.toggle_collapsed(node_id)
        except KeyError as e:
            raise click.BadParameter(str(e.args[0]), param_hint="--collapse") from e
    print_session(session)


@main.command("set")
@click.argument("node_id", metavar="ID", type=int)
@click.argument("state", type=click.Choice(list(STATE_CHOICES)))
@click.pass_context
def set_state(ctx: click.Context, node_id: int, state: str) -> None:
    """Set the state of todo ID."""
    _run_edit(ctx, lambda s: s.set_state(node_id, STATE_CHOICES[state]))


@main.command()
@click.argument("node_id", metavar="ID", type=int)
@click.argument("state", type=click.Choice(list(STATE_CHOICES)))
@click.pass_context
def toggle(ctx: click.Context, node_id: int, state: str) -> None:
    """Switch todo ID to STATE, or back to incomplete if it already is."""
    _run_edit(ctx, lambda s: s.toggle_state(node_id, STATE_CHOICES[state]))


@main.command()
@click.argument("node_id", metavar="ID", type=int)
@click.pass_context
def highlight(ctx: click.Context, node_id: int) -> None:
    """Toggle the highlight of todo ID (incomplete todos only)."""
    _run_edit(ctx, lambda s: s.toggle_highlight(node_id))


@main.command()
@click.argument("node_id", metavar="ID", type=int)
@click.argument("text", callback=_single_line)
@click.pass_context
def edit(ctx: click.Context, node_id: int, text: str) -> None:
    """Replace the text of todo ID."""
    _run_edit(ctx, lambda s: s.edit_text(node_id, text))


@main.command()
@click.argument("text", callback=_single_line)
@click.option("--after", "after_id", type=int, default=None, help="Add as the next sibling of this id")
@click.option("--under", "parent_id", type=int, default=None, help="Add as the last child of this id")
@click.pass_context
def add(ctx: click.Context, text: str, after_id: int | None, parent_id: int | None) -> None:
    """Add a todo (after the last top-level todo by default)."""
    if after_id is not None and parent_id is not None:
        raise click.UsageError("Cannot combine --after with --under. Choose one.")
    if parent_id is not None:
        _run_edit(ctx, lambda s: s.add_child(parent_id, text))
    else:
        _run_edit(ctx, lambda s: s.add_sibling(after_id, text))


@main.command()
@click.argument("node_id", metavar="ID", type=int)
@click.pass_context
def delete(ctx: click.Context, node_id: int) -> None:
    """Delete todo ID and everything nested under it."""
    _run_edit(ctx, lambda s: s.delete(node_id))


@main.command()
@click.pass_context
def watch(ctx: click.Context) -> None:
    """Print the tree, then again every time the file changes. Ctrl+C to stop."""
    session, sync = _open_session(ctx)
    try:
        sync.start()
    except TdFileError as e:
        log.error(f"Error starting file synchronizer: {e}")
        sys.exit(1)

    print_session(session)
    try:
        while True:
            if not sync.wait_for_reload(timeout=0.5):
                continue
            session.reload()
            log.console.rule(str(session.path))
            print_session(session)
    except KeyboardInterrupt:
        pass
    finally:
        sync.stop()
