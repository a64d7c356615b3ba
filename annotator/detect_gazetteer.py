# annotator/detect_gazetteer.py

from __future__ import annotations

import regex as re
from typing import Dict, List, Mapping

from annotator.models import Span


class GazetteerAnnotator:
    """
    Offline backend: finds configured surface forms as whole words.

    Longer terms win over shorter ones starting at the same position
    ("New York City" before "New York").
    """

    def __init__(self, terms: Mapping[str, str], case_sensitive: bool = False):
        self.case_sensitive = case_sensitive
        self._terms: Dict[str, str] = {}
        for surface, reference in terms.items():
            surface = surface.strip()
            if surface:
                self._terms[self._key(surface)] = reference
        self._pattern = self._compile()

    def _key(self, surface: str) -> str:
        return surface if self.case_sensitive else surface.lower()

    def _compile(self):
        if not self._terms:
            return None
        alternatives = sorted(self._terms, key=len, reverse=True)
        body = "|".join(re.escape(t) for t in alternatives)
        flags = 0 if self.case_sensitive else re.IGNORECASE
        return re.compile(rf"(?<!\w)(?:{body})(?!\w)", flags=flags)

    def __call__(self, fragment: str) -> List[Span]:
        spans: List[Span] = []
        if self._pattern is None:
            return spans

        for m in self._pattern.finditer(fragment):
            reference = self._terms.get(self._key(m.group(0)))
            if reference is None:
                continue
            spans.append(Span(start=m.start(), length=m.end() - m.start(), concept_id=reference))
        return spans
