# annotator/config.py

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict

import yaml

BACKENDS = ("gazetteer", "spacy", "http")

# The service counts characters on the escaped text, which can be up to
# three times longer than the raw fragment, so stay well below its limit.
DEFAULT_MAX_FRAGMENT_LENGTH = 1000

API_KEY_ENV = "ANNOTATOR_API_KEY"


@dataclass
class HttpConfig:
    endpoint: str = "https://babelfy.io/v1/disambiguate"
    key: str = ""
    lang: str = "EN"
    match: str = "EXACT_MATCHING"
    timeout_s: float = 30.0
    reference_field: str = "DBpediaURL"


@dataclass
class SpacyConfig:
    model: str = "en_core_web_sm"


@dataclass
class GazetteerConfig:
    terms: Dict[str, str] = field(default_factory=dict)
    case_sensitive: bool = False


@dataclass
class ConceptConfig:
    prefix: str | None = None
    mapping: Dict[str, str] | None = None


@dataclass
class AnnotatorConfig:
    max_fragment_length: int = DEFAULT_MAX_FRAGMENT_LENGTH
    max_workers: int = 1
    backend: str = "gazetteer"
    http: HttpConfig = field(default_factory=HttpConfig)
    spacy: SpacyConfig = field(default_factory=SpacyConfig)
    gazetteer: GazetteerConfig = field(default_factory=GazetteerConfig)
    concepts: ConceptConfig = field(default_factory=ConceptConfig)

    def __post_init__(self):
        if not isinstance(self.max_fragment_length, int) or self.max_fragment_length <= 0:
            raise ValueError(
                f"max_fragment_length must be a positive integer, got {self.max_fragment_length!r}"
            )
        if not isinstance(self.max_workers, int) or self.max_workers <= 0:
            raise ValueError(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend {self.backend!r}, expected one of {BACKENDS}")


def _positive_int(value: Any, name: str) -> int:
    message = f"{name} must be a positive integer, got {value!r}"
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(message)
    try:
        number = int(value)
    except ValueError:
        raise ValueError(message) from None
    if number <= 0:
        raise ValueError(message)
    return number


def config_from_dict(cfg: Dict[str, Any] | None) -> AnnotatorConfig:
    cfg = cfg or {}

    http_cfg = cfg.get("http", {}) or {}
    http = HttpConfig(
        endpoint=http_cfg.get("endpoint", HttpConfig.endpoint),
        key=http_cfg.get("key") or os.environ.get(API_KEY_ENV, ""),
        lang=http_cfg.get("lang", HttpConfig.lang),
        match=http_cfg.get("match", HttpConfig.match),
        timeout_s=float(http_cfg.get("timeout_s", HttpConfig.timeout_s)),
        reference_field=http_cfg.get("reference_field", HttpConfig.reference_field),
    )

    spacy_cfg = cfg.get("spacy", {}) or {}
    gaz_cfg = cfg.get("gazetteer", {}) or {}
    concepts_cfg = cfg.get("concepts", {}) or {}

    mapping = concepts_cfg.get("mapping")
    return AnnotatorConfig(
        max_fragment_length=_positive_int(
            cfg.get("max_fragment_length", DEFAULT_MAX_FRAGMENT_LENGTH), "max_fragment_length"
        ),
        max_workers=_positive_int(cfg.get("max_workers", 1), "max_workers"),
        backend=str(cfg.get("backend", "gazetteer")),
        http=http,
        spacy=SpacyConfig(model=spacy_cfg.get("model", SpacyConfig.model)),
        gazetteer=GazetteerConfig(
            terms={str(k): str(v) for k, v in (gaz_cfg.get("terms") or {}).items()},
            case_sensitive=bool(gaz_cfg.get("case_sensitive", False)),
        ),
        concepts=ConceptConfig(
            prefix=concepts_cfg.get("prefix"),
            mapping={str(k): str(v) for k, v in mapping.items()} if mapping else None,
        ),
    )


def load_config(path: str) -> AnnotatorConfig:
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)
    return config_from_dict(cfg)
