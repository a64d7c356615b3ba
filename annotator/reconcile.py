# annotator/reconcile.py

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, Iterator, List, Optional, Set, Tuple

from .chunker import split_chunks
from .errors import ServiceAuthError, TransientServiceError
from .models import AnnotationReport, Chunk, Span
from .resolve import ConceptResolver, IdentityResolver, dedupe_spans, resolve_spans

logger = logging.getLogger(__name__)

AnnotateFn = Callable[[str], Iterable[Span]]

# Result of one chunk call; None means the call failed transiently
_ChunkResult = Optional[List[Span]]


class Reconciler:
    """
    Annotate text of any length with a length-limited annotation function.

    The text is split into chunks, `annotate_fn` is called once per chunk
    fragment and the returned spans are moved into the coordinate space of
    the whole text. Instances hold no per-request state.
    """

    def __init__(
        self,
        annotate_fn: AnnotateFn,
        max_len: int,
        resolver: Optional[ConceptResolver] = None,
        max_workers: int = 1,
        close_backend: bool = False,
    ):
        if isinstance(max_len, bool) or not isinstance(max_len, int) or max_len <= 0:
            raise ValueError(f"max_len must be a positive integer, got {max_len!r}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers!r}")
        self.annotate_fn = annotate_fn
        self.max_len = max_len
        self.resolver = resolver if resolver is not None else IdentityResolver()
        self.max_workers = max_workers
        self.close_backend = close_backend

    def __enter__(self) -> "Reconciler":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        """Close the annotation backend when this reconciler owns it."""
        if not self.close_backend:
            return
        close = getattr(self.annotate_fn, "close", None)
        if close is not None:
            close()

    def annotate(self, text: str) -> Set[Span]:
        return self.annotate_with_report(text).spans

    def annotate_with_report(self, text: str) -> AnnotationReport:
        started = time.perf_counter()
        chunks = split_chunks(text, self.max_len)
        if len(chunks) > 1:
            logger.debug("Split %d characters into %d chunks", len(text), len(chunks))

        report = AnnotationReport(spans=set(), chunks=len(chunks))
        collected: List[Span] = []
        base_offset = 0

        for chunk, raw in self._results(chunks):
            if raw is None:
                report.failed_chunks.append(chunk.index)
            else:
                in_range = self._in_bounds(chunk, raw)
                report.dropped_out_of_range += len(raw) - len(in_range)
                resolved, dropped = resolve_spans(in_range, self.resolver)
                report.dropped_unresolved += dropped
                collected.extend(span.shifted(base_offset) for span in resolved)
            base_offset += len(chunk.text)

        report.spans = dedupe_spans(collected)
        report.elapsed_ms = (time.perf_counter() - started) * 1000.0
        return report

    def _call(self, chunk: Chunk) -> _ChunkResult:
        try:
            return list(self.annotate_fn(chunk.fragment))
        except ServiceAuthError:
            logger.error("Annotation service refused chunk %d; aborting request", chunk.index)
            raise
        except (TransientServiceError, OSError) as exc:
            logger.warning(
                "Annotation of chunk %d failed, continuing without it: %s",
                chunk.index,
                exc,
            )
            return None

    def _results(self, chunks: List[Chunk]) -> Iterator[Tuple[Chunk, _ChunkResult]]:
        if self.max_workers == 1 or len(chunks) == 1:
            for chunk in chunks:
                yield chunk, self._call(chunk)
            return

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures: List[Future] = [executor.submit(self._call, c) for c in chunks]
            # consume in chunk order, not completion order
            for chunk, future in zip(chunks, futures):
                yield chunk, future.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    @staticmethod
    def _in_bounds(chunk: Chunk, spans: List[Span]) -> List[Span]:
        size = len(chunk.fragment)
        kept: List[Span] = []
        for span in spans:
            if span.end > size:
                logger.warning(
                    "Dropping span %r: exceeds chunk %d (%d characters)", span, chunk.index, size
                )
                continue
            kept.append(span)
        return kept


def annotate(
    text: str,
    max_len: int,
    annotate_fn: AnnotateFn,
    resolver: Optional[ConceptResolver] = None,
    max_workers: int = 1,
) -> Set[Span]:
    return Reconciler(annotate_fn, max_len, resolver=resolver, max_workers=max_workers).annotate(text)
