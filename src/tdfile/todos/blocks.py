"""Block extraction: find ``:td`` fenced regions and decode their lines."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from tdfile.config import MARKER
from tdfile.io_utils import read_raw_text
from tdfile.todos.codec import decode
from tdfile.todos.model import TodoRecord

Block = list[str]

UNMATCHED_MARKER_WARNING = f"Unmatched {MARKER} block at end of file ignored"


def is_marker(line: str) -> bool:
    return line.strip() == MARKER


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping ``\\r`` and a trailing empty line so joins are exact."""
    return text.split("\n")


def extract_blocks(lines: Iterable[str]) -> tuple[list[Block], list[str]]:
    """Group the lines between paired markers into blocks.

    Returns ``(blocks, warnings)``. A marker left open at the end of input
    drops its partial block and produces a single warning.
    """
    blocks: list[Block] = []
    warnings: list[str] = []
    current: Block = []
    in_block = False

    for line in lines:
        if is_marker(line):
            if in_block:
                blocks.append(current)
            current = []
            in_block = not in_block
        elif in_block:
            current.append(line)

    if in_block:
        warnings.append(UNMATCHED_MARKER_WARNING)
    return blocks, warnings


def read_blocks(path: Path | str) -> tuple[list[Block], list[str]]:
    """Read *path* and extract its blocks. Read errors propagate to the caller."""
    return extract_blocks(split_lines(read_raw_text(path)))


def parse_records(blocks: Sequence[Block]) -> tuple[list[TodoRecord], list[str]]:
    """Decode every block line into records, in file order.

    Ids and line numbers come from one running counter over all block
    lines, so they are unique across blocks. Blank lines are skipped;
    other non-todo lines are skipped with a warning.
    """
    records: list[TodoRecord] = []
    warnings: list[str] = []
    line_num = 0
    for block_idx, block in enumerate(blocks, start=1):
        for line in block:
            line_num += 1
            record = decode(line, id=line_num, line_number=line_num)
            if record is None:
                if line.strip():
                    warnings.append(
                        f"Malformed todo in block {block_idx}, line {line_num}: '{line.rstrip()}'"
                    )
                continue
            records.append(record)
    return records, warnings

