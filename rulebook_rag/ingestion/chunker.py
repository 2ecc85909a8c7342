"""
Sliding-window chunking of the rulebook into overlapping passages.

Break policy: inside each window the split lands right after the last
occurrence of the highest-priority separator that still moves the window
forward. When no separator qualifies, the window is hard-cut at
``chunk_size``. Separators stay with the passage before the break, so the
passages always cover the whole text.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " "]


@dataclass(frozen=True)
class Passage:
    text: str
    start: int
    index: int

    @property
    def end(self) -> int:
        return self.start + len(self.text)


def _find_break(
    text: str,
    start: int,
    limit: int,
    chunk_overlap: int,
    separators: Sequence[str],
) -> int:
    # a break at `end` is only usable if the next window starts after `start`
    min_end = start + chunk_overlap + 1

    for sep in separators:
        if not sep:
            continue
        pos = text.rfind(sep, start, limit)
        if pos == -1:
            continue
        end = pos + len(sep)
        if end >= min_end:
            return end

    return limit


def split_text(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
    separators: Optional[Sequence[str]] = None,
) -> List[Passage]:
    """
    Split text into passages of at most chunk_size characters where each
    passage after the first starts chunk_overlap characters before the end
    of the previous one.

    An empty text yields no passages.
    """

    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError(
            f"chunk_overlap must be in [0, chunk_size), got {chunk_overlap} for chunk_size {chunk_size}"
        )

    if separators is None:
        separators = DEFAULT_SEPARATORS

    passages: List[Passage] = []
    start = 0
    total = len(text)

    while start < total:
        limit = start + chunk_size
        if limit >= total:
            passages.append(Passage(text=text[start:], start=start, index=len(passages)))
            break

        end = _find_break(text, start, limit, chunk_overlap, separators)
        passages.append(Passage(text=text[start:end], start=start, index=len(passages)))
        start = end - chunk_overlap

    return passages
