# annotator/models.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Hashable, List, Optional, Set


@dataclass(frozen=True)
class Span:
    start: int
    length: int
    concept_id: Optional[Hashable] = None

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Invalid span start {self.start}")
        if self.length <= 0:
            raise ValueError(f"Invalid span length {self.length}")

    @property
    def end(self) -> int:
        return self.start + self.length

    def shifted(self, offset: int) -> "Span":
        return replace(self, start=self.start + offset)

    def with_concept(self, concept_id: Optional[Hashable]) -> "Span":
        return replace(self, concept_id=concept_id)

    def overlaps(self, other: "Span") -> bool:
        return not (self.end <= other.start or other.end <= self.start)


@dataclass(frozen=True)
class Chunk:
    """
    A contiguous piece of the original text.

    `text` includes the split character that closes the chunk (if any);
    `fragment` is what gets sent to the annotation service.
    """

    text: str
    start: int
    index: int
    separator: int = 0

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def fragment(self) -> str:
        if self.separator:
            return self.text[: len(self.text) - self.separator]
        return self.text


@dataclass
class AnnotationReport:
    spans: Set[Span]
    chunks: int
    failed_chunks: List[int] = field(default_factory=list)
    dropped_unresolved: int = 0
    dropped_out_of_range: int = 0
    elapsed_ms: float = 0.0
