"""Line-oriented renderer turning tutor output into display blocks.

Recognised per line, with no state carried between lines:

* ``#``, ``##`` or ``###`` followed by a space: heading
* ``- `` (after leading whitespace): bullet item
* digits followed by ``. ``: numbered item
* ``> ``: quote
* blank: spacer
* anything else: paragraph

Inline ``**bold**`` spans are split out of every block's text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

_BOLD = re.compile(r"(\*\*.*?\*\*)")
_NUMBERED = re.compile(r"^\d+\.\s")


@dataclass(frozen=True)
class Span:
    text: str
    bold: bool = False


@dataclass(frozen=True)
class Block:
    kind: str
    spans: Tuple[Span, ...] = field(default_factory=tuple)
    level: int = 0

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


def parse_inline(text: str) -> Tuple[Span, ...]:
    spans: List[Span] = []
    for part in _BOLD.split(text):
        if not part:
            continue
        if len(part) >= 4 and part.startswith("**") and part.endswith("**"):
            spans.append(Span(part[2:-2], bold=True))
        else:
            spans.append(Span(part))
    return tuple(spans)


def render_line(line: str) -> Block:
    for level in (3, 2, 1):
        marker = "#" * level + " "
        if line.startswith(marker):
            return Block("heading", (Span(line[len(marker):]),), level=level)

    stripped = line.strip()
    if stripped.startswith("- "):
        return Block("bullet", parse_inline(stripped[2:]))
    if _NUMBERED.match(stripped):
        return Block("numbered", parse_inline(_NUMBERED.sub("", stripped, count=1)))
    if line.startswith("> "):
        return Block("quote", parse_inline(line[2:]))
    if not stripped:
        return Block("spacer")
    return Block("paragraph", parse_inline(line))


def render(text: str) -> List[Block]:
    return [render_line(line) for line in text.split("\n")]


__all__ = ["Block", "Span", "parse_inline", "render", "render_line"]
