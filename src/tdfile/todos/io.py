"""Write a record snapshot back into the managed blocks of a file."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from tdfile import log
from tdfile.config import MARKER
from tdfile.io_utils import read_raw_text, write_raw_text
from tdfile.todos.blocks import is_marker, split_lines
from tdfile.todos.codec import decode, encode
from tdfile.todos.model import TodoRecord


def matched_spans(lines: Sequence[str]) -> list[tuple[int, int]]:
    """Return ``(open_idx, close_idx)`` for every paired marker.

    A trailing unpaired marker is not a span; it and the lines after it are
    ordinary text.
    """
    markers = [i for i, line in enumerate(lines) if is_marker(line)]
    return [(markers[i], markers[i + 1]) for i in range(0, len(markers) - 1, 2)]


def partition(
    records: Sequence[TodoRecord], capacities: Sequence[int]
) -> list[list[TodoRecord]]:
    """Split *records* into consecutive runs, one per block.

    Each block takes as many records as it currently holds todos; the last
    block also takes whatever is left over. Blocks past the end of the
    snapshot get nothing.
    """
    runs: list[list[TodoRecord]] = []
    pos = 0
    for i, cap in enumerate(capacities):
        end = len(records) if i == len(capacities) - 1 else min(pos + cap, len(records))
        runs.append(list(records[pos:end]))
        pos = end
    return runs


def rewrite_blocks(lines: Sequence[str], records: Sequence[TodoRecord]) -> list[str]:
    """Return *lines* with each block's content replaced by encoded records.

    Lines outside blocks are copied unchanged. With no paired markers the
    input is returned as-is.
    """
    spans = matched_spans(lines)
    if not spans:
        return list(lines)

    capacities = [
        sum(1 for line in lines[start + 1 : end] if decode(line) is not None)
        for start, end in spans
    ]
    runs = partition(records, capacities)

    out: list[str] = []
    cursor = 0
    for (start, end), run in zip(spans, runs):
        out.extend(lines[cursor : start + 1])
        eol = "\r" if lines[start].endswith("\r") else ""
        out.extend(encode(r) + eol for r in run)
        out.append(lines[end])
        cursor = end + 1
    out.extend(lines[cursor:])
    return out


def write_todos_to_file(path: Path | str, records: Sequence[TodoRecord]) -> bool:
    """Rewrite the managed blocks of *path* with *records*.

    Returns ``False`` without writing when the file has no complete block.
    I/O errors propagate.
    """
    lines = split_lines(read_raw_text(path))
    if not matched_spans(lines):
        log.warn(f"No complete {MARKER} block in {path}; {len(records)} todo(s) not written")
        return False
    write_raw_text(path, "\n".join(rewrite_blocks(lines, records)))
    return True
