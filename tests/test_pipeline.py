# tests/test_pipeline.py

import httpx
import pytest

import annotator.pipeline as pipeline
from annotator.config import config_from_dict
from annotator.detect_gazetteer import GazetteerAnnotator
from annotator.pipeline import annotate_text, build_backend, build_reconciler, build_resolver
from annotator.resolve import IdentityResolver, MappingResolver, PrefixResolver
from annotator.service_http import HttpAnnotationService

TEXT = (
    "Angela Merkel met the French president in Paris before flying back to Berlin. "
    "The European Union summit had been moved from New York City at short notice. "
    "Nobody mentioned Atlantis, although Germany and France both tabled proposals."
)


def test_annotate_long_text_with_shipped_config():
    spans, report = annotate_text(TEXT, "configs/annotator.yaml", max_fragment_length=40)

    assert report.chunks > 1
    assert report.failed_chunks == []
    # Atlantis has no DBpedia id
    assert report.dropped_unresolved == 1

    found = {(TEXT[s.start:s.end], s.concept_id) for s in spans}
    assert found == {
        ("Angela Merkel", "Angela_Merkel"),
        ("Paris", "Paris"),
        ("Berlin", "Berlin"),
        ("European Union", "European_Union"),
        ("New York City", "New_York_City"),
        ("Germany", "Germany"),
        ("France", "France"),
    }
    assert [s.start for s in spans] == sorted(s.start for s in spans)


def test_chunking_does_not_change_the_result():
    whole, _ = annotate_text(TEXT, "configs/annotator.yaml")
    split, report = annotate_text(TEXT, "configs/annotator.yaml", max_fragment_length=60)
    assert report.chunks == 4
    assert whole == split


def test_build_resolver_variants():
    assert isinstance(build_resolver(config_from_dict({})), IdentityResolver)
    assert isinstance(
        build_resolver(config_from_dict({"concepts": {"mapping": {"a": "b"}}})), MappingResolver
    )
    assert isinstance(
        build_resolver(config_from_dict({"concepts": {"prefix": "urn:x:"}})), PrefixResolver
    )


def test_build_backend_variants():
    assert isinstance(build_backend(config_from_dict({})), GazetteerAnnotator)
    service = build_backend(config_from_dict({"backend": "http"}))
    assert isinstance(service, HttpAnnotationService)
    service.close()


def test_reconciler_over_http_backend():
    text = "Berlin is big " * 10

    def handler(request):
        fragment = request.url.params["text"]
        body = []
        position = fragment.find("Berlin")
        while position >= 0:
            body.append(
                {
                    "charFragment": {"start": position, "end": position + 5},
                    "DBpediaURL": "http://dbpedia.org/resource/Berlin",
                }
            )
            position = fragment.find("Berlin", position + 1)
        return httpx.Response(200, json=body)

    config = config_from_dict(
        {
            "backend": "http",
            "max_fragment_length": 30,
            "concepts": {"prefix": "http://dbpedia.org/resource/"},
        }
    )
    client = httpx.Client(transport=httpx.MockTransport(handler))
    with HttpAnnotationService(config.http, client=client) as service:
        result = build_reconciler(config, service).annotate(text)

    assert {s.start for s in result} == {i * 14 for i in range(10)}
    assert {s.concept_id for s in result} == {"Berlin"}
    assert all(text[s.start:s.end] == "Berlin" for s in result)


class ClosableBackend:
    def __init__(self):
        self.closed = False

    def __call__(self, fragment):
        return []

    def close(self):
        self.closed = True


def test_reconciler_closes_the_backend_it_built(monkeypatch):
    backend = ClosableBackend()
    monkeypatch.setattr(pipeline, "build_backend", lambda config: backend)

    with pipeline.build_reconciler(config_from_dict({})) as reconciler:
        reconciler.annotate("some text")
    assert backend.closed


def test_reconciler_leaves_a_passed_backend_open():
    backend = ClosableBackend()
    with build_reconciler(config_from_dict({}), backend) as reconciler:
        reconciler.annotate("some text")
    assert not backend.closed


def test_owned_http_client_is_closed():
    reconciler = build_reconciler(config_from_dict({"backend": "http"}))
    client = reconciler.annotate_fn._client
    reconciler.close()
    assert client.is_closed


def test_owned_backend_is_closed_when_config_is_invalid(monkeypatch):
    backend = ClosableBackend()
    monkeypatch.setattr(pipeline, "build_backend", lambda config: backend)
    config = config_from_dict({})
    config.max_fragment_length = 0

    with pytest.raises(ValueError):
        pipeline.build_reconciler(config)
    assert backend.closed


def test_annotate_text_closes_its_backend(monkeypatch):
    backend = ClosableBackend()
    monkeypatch.setattr(pipeline, "build_backend", lambda config: backend)
    spans, report = annotate_text("nothing to find here", "configs/annotator.yaml")
    assert spans == []
    assert backend.closed
