from __future__ import annotations

import threading
from typing import Dict, List

from annotator.models import Span

import spacy

# Lazy-loaded spaCy models so import doesn't blow up if one is missing at install time
_NLP: Dict[str, "spacy.language.Language"] = {}
_NLP_LOCK = threading.Lock()


def _get_nlp(model: str) -> "spacy.language.Language":
    # Reconciler worker threads may ask for the same model at once
    with _NLP_LOCK:
        if model not in _NLP:
            _NLP[model] = spacy.load(model)
        return _NLP[model]


class SpacyAnnotator:
    """
    Local annotation backend on top of spaCy NER.

    The reference of each span is the entity's knowledge-base id when the
    pipeline has an entity linker, otherwise its NER label (PERSON, GPE, ...),
    so a resolver decides which labels are worth keeping.
    """

    def __init__(self, model: str = "en_core_web_sm"):
        self.model = model

    def __call__(self, fragment: str) -> List[Span]:
        nlp = _get_nlp(self.model)
        doc = nlp(fragment)

        spans: List[Span] = []
        for ent in doc.ents:
            if ent.end_char <= ent.start_char:
                continue
            reference = ent.kb_id_ or ent.label_
            spans.append(
                Span(
                    start=ent.start_char,
                    length=ent.end_char - ent.start_char,
                    concept_id=reference,
                )
            )
        return spans
