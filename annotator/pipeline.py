# annotator/pipeline.py

from __future__ import annotations

from typing import List, Optional, Tuple

from .config import AnnotatorConfig, load_config
from .models import AnnotationReport, Span
from .reconcile import AnnotateFn, Reconciler
from .resolve import (
    ConceptResolver,
    IdentityResolver,
    MappingResolver,
    PrefixResolver,
    sorted_spans,
)


def build_backend(config: AnnotatorConfig) -> AnnotateFn:
    if config.backend == "http":
        from .service_http import HttpAnnotationService

        return HttpAnnotationService(config.http)

    if config.backend == "spacy":
        # spaCy is heavy; only import it when asked for
        from .detect_ner import SpacyAnnotator

        return SpacyAnnotator(config.spacy.model)

    from .detect_gazetteer import GazetteerAnnotator

    return GazetteerAnnotator(
        config.gazetteer.terms, case_sensitive=config.gazetteer.case_sensitive
    )


def build_resolver(config: AnnotatorConfig) -> ConceptResolver:
    concepts = config.concepts
    if concepts.prefix:
        return PrefixResolver(concepts.prefix, concepts.mapping)
    if concepts.mapping is not None:
        return MappingResolver(concepts.mapping)
    return IdentityResolver()


def build_reconciler(
    config: AnnotatorConfig, backend: Optional[AnnotateFn] = None
) -> Reconciler:
    """
    Build a Reconciler for the configured backend and resolver.

    Without `backend`, one is built from the config and the reconciler owns
    it: use the reconciler as a context manager (or call `close()`) so an
    HTTP backend releases its client. A backend passed in stays the
    caller's to close.
    """
    owned = build_backend(config) if backend is None else None
    try:
        return Reconciler(
            backend if backend is not None else owned,
            config.max_fragment_length,
            resolver=build_resolver(config),
            max_workers=config.max_workers,
            close_backend=backend is None,
        )
    except ValueError:
        close = getattr(owned, "close", None)
        if close is not None:
            close()
        raise


def annotate_text(
    text: str,
    config_path: str = "configs/annotator.yaml",
    max_fragment_length: Optional[int] = None,
) -> Tuple[List[Span], AnnotationReport]:
    """
    Annotate text using the configured backend and concept resolver.

    max_fragment_length:
      - If None: use the value from the config file.
      - Otherwise overrides it for this call.
    """
    config = load_config(config_path)
    if max_fragment_length is not None:
        config.max_fragment_length = max_fragment_length

    with build_reconciler(config) as reconciler:
        report = reconciler.annotate_with_report(text)

    return sorted_spans(report.spans), report
