"""Splitting raw diffs into chunks that fit one compression request."""

from __future__ import annotations

from typing import Iterable, Iterator

# Every file record in a unified git diff starts with a "diff --git" line.
SECTION_MARKER = "\ndiff"


def split_diff_sections(diff: str) -> Iterator[str]:
    """Yield the per-file sections of a diff, in order.

    The newline in front of each marker is the separator between sections and
    is not part of either one, so ``"\\n".join(sections) == diff``. An empty
    diff yields nothing; a diff without markers yields itself.
    """
    if not diff:
        return
    start = 0
    while True:
        marker = diff.find(SECTION_MARKER, start)
        if marker == -1:
            yield diff[start:]
            return
        yield diff[start:marker]
        start = marker + 1  # skip the separating newline


def split_by_length(text: str, max_length: int) -> Iterator[str]:
    """Cut text into consecutive pieces of at most max_length characters.

    Purely positional; the last piece may be shorter. Text that already fits,
    including the empty string, is yielded unchanged.
    """
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")
    if len(text) <= max_length:
        yield text
        return
    for offset in range(0, len(text), max_length):
        yield text[offset : offset + max_length]


def pack_chunks(fragments: Iterable[str], max_size: int, sep: str = "\n") -> list[str]:
    """Greedily merge consecutive fragments into chunks of at most max_size.

    A fragment joins the current chunk (with ``sep`` in between) when the
    result still fits, otherwise it starts a new chunk. Fragments are never
    split here; one that is already longer than max_size becomes a chunk on
    its own and is the only way a chunk can exceed the limit.
    """
    chunks: list[str] = []
    for fragment in fragments:
        if chunks and len(chunks[-1]) + len(sep) + len(fragment) <= max_size:
            chunks[-1] = chunks[-1] + sep + fragment
        else:
            chunks.append(fragment)
    return chunks


def chunk_diff(diff: str, max_size: int, sep: str = "\n") -> list[str]:
    """Split a diff into sections, bound each to max_size, and pack them."""
    fragments = (piece for section in split_diff_sections(diff) for piece in split_by_length(section, max_size))
    return pack_chunks(fragments, max_size, sep)
