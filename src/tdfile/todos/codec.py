"""Line codec: one text line <-> one TodoRecord."""

from __future__ import annotations

import re

from tdfile.todos.model import TodoRecord, TodoState

TODO_RE = re.compile(r"^([ \t]*)- \[( |x|-|>)\] (.*)$")

HIGHLIGHT_SUFFIX = "*"

_MARKER_TO_STATE: dict[str, TodoState] = {
    " ": TodoState.INCOMPLETE,
    "x": TodoState.COMPLETED,
    "-": TodoState.CANCELLED,
    ">": TodoState.PUSHED,
}
_STATE_TO_MARKER: dict[TodoState, str] = {v: k for k, v in _MARKER_TO_STATE.items()}


def state_marker(state: TodoState) -> str:
    return _STATE_TO_MARKER[state]


def _split_highlight(text: str) -> tuple[str, bool]:
    """Strip a trailing standalone ``*`` token from *text*."""
    stripped = text.strip()
    if not stripped.endswith(HIGHLIGHT_SUFFIX):
        return text, False
    head = stripped[: -len(HIGHLIGHT_SUFFIX)]
    if head and not head[-1].isspace():
        # "foo*" is literal text, not a highlight
        return text, False
    return head.strip(), True


def decode(line: str, *, id: int = 0, line_number: int = 0) -> TodoRecord | None:
    """Parse *line* into a record, or return ``None`` when it is not a todo."""
    m = TODO_RE.match(line.rstrip("\r\n"))
    if m is None:
        return None
    indent, marker, text = m.groups()
    state = _MARKER_TO_STATE[marker]
    text, highlighted = _split_highlight(text)
    return TodoRecord(
        id=id,
        text=text,
        state=state,
        indent_level=len(indent),
        highlighted=highlighted and state == TodoState.INCOMPLETE,
        line_number=line_number,
    )


def encode(record: TodoRecord) -> str:
    text = record.text
    if record.highlighted:
        text = f"{text.strip()} {HIGHLIGHT_SUFFIX}"
    return f"{' ' * record.indent_level}- [{state_marker(record.state)}] {text}"
