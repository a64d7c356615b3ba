# annotator/service_http.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import HttpConfig
from .errors import ServiceAuthError, TransientServiceError
from .models import Span

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = (401, 403, 429)
KEY_LIMIT_MESSAGE = "key is not valid or the daily requests limit has been reached"


class HttpAnnotationService:
    """
    Client for a Babelfy-style `disambiguate` endpoint.

    Calling the instance with a text fragment returns the spans found in it.
    `concept_id` holds the raw service reference (by default the DBpedia URL);
    mapping it to a canonical id is left to a resolver.

    Character fragments are reported with an inclusive end offset.
    """

    def __init__(self, config: HttpConfig, client: Optional[httpx.Client] = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout_s)

    def __enter__(self) -> "HttpAnnotationService":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __call__(self, fragment: str) -> List[Span]:
        return self.annotate(fragment)

    def _params(self, fragment: str) -> Dict[str, str]:
        params = {
            "text": fragment,
            "lang": self.config.lang,
            "match": self.config.match,
        }
        if self.config.key:
            params["key"] = self.config.key
        return params

    def annotate(self, fragment: str) -> List[Span]:
        try:
            r = self._client.get(self.config.endpoint, params=self._params(fragment))
        except httpx.TransportError as e:
            raise TransientServiceError(f"Request to {self.config.endpoint} failed: {e}") from e

        if r.status_code in AUTH_STATUS_CODES:
            raise ServiceAuthError(
                f"The annotation service key is invalid or has reached its limit (HTTP {r.status_code})"
            )
        if r.status_code >= 400:
            raise TransientServiceError(f"Annotation service returned HTTP {r.status_code}")

        try:
            payload = r.json()
        except ValueError as e:
            raise TransientServiceError("Annotation service returned a non-JSON body") from e

        if isinstance(payload, dict):
            message = str(payload.get("message", ""))
            if KEY_LIMIT_MESSAGE in message.lower():
                raise ServiceAuthError(f"The annotation service key is invalid or has reached its limit: {message}")
            raise TransientServiceError(f"Unexpected annotation service response: {message or payload!r}")
        if not isinstance(payload, list):
            raise TransientServiceError(f"Unexpected annotation service response: {payload!r}")

        return self._parse_items(payload)

    def _parse_items(self, items: List[Any]) -> List[Span]:
        spans: List[Span] = []
        for item in items:
            try:
                fragment = item["charFragment"]
                start = int(fragment["start"])
                end = int(fragment["end"])
            except (KeyError, TypeError, ValueError) as e:
                raise TransientServiceError(f"Malformed annotation item: {item!r}") from e

            length = end - start + 1
            if start < 0 or length <= 0:
                logger.debug("Skipping empty annotation item %r", item)
                continue

            reference = item.get(self.config.reference_field) or None
            spans.append(Span(start=start, length=length, concept_id=reference))
        return spans
