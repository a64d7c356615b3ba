# annotator/chunker.py

from __future__ import annotations

from typing import List

from .models import Chunk

SPLIT_CHAR = " "


def _check_max_len(max_len: int) -> None:
    if isinstance(max_len, bool) or not isinstance(max_len, int) or max_len <= 0:
        raise ValueError(f"max_len must be a positive integer, got {max_len!r}")


def _find_split(text: str, start: int, max_len: int) -> int:
    """
    Return the position of the space that closes the chunk starting at `start`,
    or -1 if there is no space left after `start`.

    Prefers the rightmost space at most `max_len` characters past the start.
    If the first word alone is longer than that, the first space after the
    start is used and the chunk ends up oversized.
    """
    limit = start + max_len
    split = text.rfind(SPLIT_CHAR, start + 1, limit + 1)
    if split >= 0:
        return split
    return text.find(SPLIT_CHAR, start + 1)


def split_chunks(text: str, max_len: int) -> List[Chunk]:
    """
    Partition `text` into chunks whose fragments are at most `max_len`
    characters, splitting only on spaces.

    The split space belongs to the chunk it closes, so concatenating the
    chunk texts gives back `text` unchanged and each chunk starts where the
    previous one ended.
    """
    _check_max_len(max_len)

    if len(text) <= max_len:
        return [Chunk(text=text, start=0, index=0)]

    chunks: List[Chunk] = []
    start = 0
    while len(text) - start > max_len:
        split = _find_split(text, start, max_len)
        if split < 0:
            # one unbroken run until the end: keep it whole
            break
        chunks.append(
            Chunk(
                text=text[start : split + 1],
                start=start,
                index=len(chunks),
                separator=1,
            )
        )
        start = split + 1

    if start < len(text) or not chunks:
        chunks.append(Chunk(text=text[start:], start=start, index=len(chunks)))

    return chunks


def split_text(text: str, max_len: int) -> List[str]:
    """
    Split `text` into consecutive chunks; `"".join(result) == text`.

    The length limit applies to the fragment of each chunk, not to the chunk
    string: a non-final chunk keeps the space it was split on as its last
    character, so it can be `max_len + 1` characters long. Use
    `split_chunks` to get the fragments and offsets.
    """
    return [c.text for c in split_chunks(text, max_len)]
