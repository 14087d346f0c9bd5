from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TextIO

TOP_LEFT = "┌"
TOP_RIGHT = "┐"
LEFT_TEE = "├"
RIGHT_TEE = "┤"
BOTTOM_LEFT = "└"
BOTTOM_RIGHT = "┘"
BORDER = "│"
LINE = "─"


class TableShapeError(ValueError):
    pass


@dataclass(slots=True)
class Table:
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)

    def add_row(self, row: Sequence[str]) -> None:
        self.rows.append(list(row))

    def column_widths(self) -> list[int]:
        for row in self.rows:
            if len(row) != len(self.header):
                raise TableShapeError(
                    f"Row has {len(row)} column(s), header has {len(self.header)}"
                )

        widths = [len(cell) for cell in self.header]
        for row in self.rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))
        return widths

    def render_lines(self) -> list[str]:
        widths = self.column_widths()
        # One border glyph plus a margin on each side of every column.
        inner_width = sum(width + 3 for width in widths) - 1
        rule = LINE * inner_width

        def format_row(row: Sequence[str]) -> str:
            cells = "".join(f" {cell.ljust(width)} {BORDER}" for cell, width in zip(row, widths))
            return BORDER + cells

        lines = [TOP_LEFT + rule + TOP_RIGHT, format_row(self.header), LEFT_TEE + rule + RIGHT_TEE]
        lines.extend(format_row(row) for row in self.rows)
        lines.append(BOTTOM_LEFT + rule + BOTTOM_RIGHT)
        return lines

    def render(self, stream: TextIO | None = None) -> None:
        stream = stream or sys.stdout
        lines = self.render_lines()
        stream.write("\n".join(lines) + "\n")
        stream.flush()
