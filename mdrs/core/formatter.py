"""
Inline emphasis formatter for AI-verification narratives.

Text wrapped in `**...**` becomes an emphasized segment with the markers
stripped. Pairs are matched left to right with no nesting; an unterminated
`**` stays in the text as a literal.
"""

import re
from typing import List

from pydantic import BaseModel, ConfigDict

_EMPHASIS_PATTERN = re.compile(r"\*\*(.*?)\*\*")


class Segment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    emphasized: bool = False


def format_markup(text: str) -> List[Segment]:
    """
    Split `text` into alternating plain / emphasized segments.

    re.split with one capture group yields plain text at even indexes and
    the captured (emphasized) text at odd indexes. Empty pieces are dropped,
    so empty input yields an empty list.
    """
    if not text:
        return []

    segments = []
    for i, part in enumerate(_EMPHASIS_PATTERN.split(text)):
        if not part:
            continue
        segments.append(Segment(text=part, emphasized=i % 2 == 1))
    return segments


def strip_markup(segments: List[Segment]) -> str:
    """Concatenate segment text, discarding emphasis."""
    return "".join(s.text for s in segments)


def segments_to_markdown(segments: List[Segment]) -> str:
    """Re-emit segments as Markdown for display surfaces that render it."""
    return "".join(f"**{s.text}**" if s.emphasized else s.text for s in segments)
