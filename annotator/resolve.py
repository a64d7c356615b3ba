# annotator/resolve.py

from __future__ import annotations

from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Protocol, Set, Tuple

from annotator.models import Span


class ConceptResolver(Protocol):
    def resolve(self, reference: Optional[Hashable]) -> Optional[Hashable]:
        """Map a service reference to a canonical id, or None if unknown."""


class IdentityResolver:
    def resolve(self, reference: Optional[Hashable]) -> Optional[Hashable]:
        return reference


class MappingResolver:
    def __init__(self, mapping: Mapping[Hashable, Hashable]):
        self._mapping: Dict[Hashable, Hashable] = dict(mapping)

    def resolve(self, reference: Optional[Hashable]) -> Optional[Hashable]:
        if reference is None:
            return None
        return self._mapping.get(reference)


class PrefixResolver:
    """
    Resolve references that live under a namespace, e.g.
    http://dbpedia.org/resource/Berlin -> Berlin.

    With a mapping, the local name is looked up in it as well and anything
    not in the table is dropped.
    """

    def __init__(self, prefix: str, mapping: Optional[Mapping[str, Hashable]] = None):
        if not prefix:
            raise ValueError("prefix must not be empty")
        self.prefix = prefix
        self._mapping = dict(mapping) if mapping is not None else None

    def resolve(self, reference: Optional[Hashable]) -> Optional[Hashable]:
        if not isinstance(reference, str) or not reference.startswith(self.prefix):
            return None
        local = reference[len(self.prefix):]
        if not local:
            return None
        if self._mapping is None:
            return local
        return self._mapping.get(local)


def resolve_spans(spans: Iterable[Span], resolver: ConceptResolver) -> Tuple[List[Span], int]:
    """
    Resolve the concept of every raw span once.

    Spans whose reference does not resolve are dropped; the second element
    of the result is how many were dropped.
    """
    resolved: List[Span] = []
    dropped = 0
    for span in spans:
        concept = resolver.resolve(span.concept_id)
        if concept is None:
            dropped += 1
            continue
        resolved.append(span.with_concept(concept))
    return resolved, dropped


def dedupe_spans(spans: Iterable[Span]) -> Set[Span]:
    # Span equality is (start, length, concept_id)
    return set(spans)


def sorted_spans(spans: Iterable[Span]) -> List[Span]:
    return sorted(spans, key=lambda s: (s.start, s.length, str(s.concept_id)))
