"""
PlantDex Backend — Plant Identification Client
===============================================

What:  Sends an embedded photo to the Plant.id API and reshapes the top
       suggestion into {name, scientific_name, habitat, care_tips}.
Who:   PlantService, for submissions whose image is a data URI.

Design Decision:
    IdentificationClient is an abstract interface; PlantIdClient is the
    production implementation. Tests and PlantService only need
    `identify()`, so a fake client is a few lines.

Call Budget:
    - One HTTP request per identify() by default (IDENTIFICATION_MAX_ATTEMPTS=1)
    - Extra attempts, when configured, only cover connection failures;
      an upstream error response or an empty answer is final
    - The whole call is bounded by IDENTIFICATION_TIMEOUT; exceeding it
      raises IdentificationTimeoutError. Cancelling the calling task cancels
      the in-flight request.

Response reshaping (upstream has no habitat field):
    habitat   ← "Native to regions where <taxonomy.class> plants typically grow"
    care_tips ← first two sentences of wiki_description.value
"""

import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from plantdex.config import settings
from plantdex.exceptions import IdentificationError, IdentificationTimeoutError
from plantdex.middleware.request_id import request_id_var
from plantdex.schemas.plant import DEFAULT_CARE_TIPS, DEFAULT_HABITAT
from plantdex.services.images import EmbeddedImage

logger = logging.getLogger(__name__)

HABITAT_TEMPLATE = "Native to regions where {} plants typically grow"

PLANT_DETAILS = ["common_names", "taxonomy", "url", "wiki_description"]

UNUSABLE_RESPONSE = "Unusable response from identification service"


@dataclass(frozen=True)
class IdentificationResult:
    name: str
    scientific_name: str
    habitat: str
    care_tips: str


class IdentificationClient(ABC):
    """
    Interface for services that name a plant from a photo.

    Contract:
        - identify() returns a fully populated IdentificationResult
        - every failure is raised as IdentificationError (or its timeout
          subtype); implementation-specific exceptions never escape
    """

    @abstractmethod
    async def identify(self, image: EmbeddedImage) -> IdentificationResult:
        ...

    async def aclose(self) -> None:
        return None


def summarize_care_tips(description: str) -> str:
    """
    First two sentences of a wiki description, ending in a single period.

    >>> summarize_care_tips("Grows fast. Likes sun. Toxic to cats.")
    'Grows fast. Likes sun.'
    """
    sentences = description.strip().split(". ")
    return ". ".join(sentences[:2]).rstrip(".") + "."


def _section(parent: Dict[str, Any], key: str) -> Dict[str, Any]:
    """A nested object of a suggestion; absent counts as empty."""
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise IdentificationError(upstream_message=UNUSABLE_RESPONSE, context={"field": key})
    return value


def _text(parent: Dict[str, Any], key: str) -> Optional[str]:
    value = parent.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise IdentificationError(upstream_message=UNUSABLE_RESPONSE, context={"field": key})
    return value


def normalize_suggestion(suggestion: Any) -> IdentificationResult:
    """
    Reshape one Plant.id suggestion into an IdentificationResult.

    Raises:
        IdentificationError: the suggestion is not an object, has no usable
            plant_name, or a known field has the wrong JSON type
    """
    if not isinstance(suggestion, dict):
        raise IdentificationError(upstream_message=UNUSABLE_RESPONSE)
    name = _text(suggestion, "plant_name")
    if not name or not name.strip():
        raise IdentificationError(upstream_message=UNUSABLE_RESPONSE, context={"field": "plant_name"})

    details = _section(suggestion, "plant_details")
    plant_class = _text(_section(details, "taxonomy"), "class")
    description = _text(_section(details, "wiki_description"), "value")

    return IdentificationResult(
        name=name,
        scientific_name=_text(details, "scientific_name") or name,
        habitat=HABITAT_TEMPLATE.format(plant_class) if plant_class else DEFAULT_HABITAT,
        care_tips=(
            summarize_care_tips(description)
            if description and description.strip()
            else DEFAULT_CARE_TIPS
        ),
    )


def _is_connection_failure(exc: BaseException) -> bool:
    # Timeouts are excluded: the overall deadline already covers them.
    return isinstance(exc, httpx.TransportError) and not isinstance(exc, httpx.TimeoutException)


def _upstream_message(response: httpx.Response) -> str:
    """Best-effort explanation from an upstream error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    text = response.text.strip()
    if text:
        return text[:200]
    return response.reason_phrase or f"HTTP {response.status_code}"


class PlantIdClient(IdentificationClient):
    """
    Plant.id v2 implementation.

    Args (all default to settings):
        api_key:      sent as the Api-Key header
        api_url:      identify endpoint
        timeout:      overall deadline for identify(), in seconds
        max_attempts: total attempts for connection-level failures
        transport:    httpx transport override (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.plant_id_api_key if api_key is None else api_key
        self.api_url = api_url or settings.plant_id_api_url
        self.timeout = timeout or settings.identification_timeout
        self.max_attempts = max_attempts or settings.identification_max_attempts
        self._http = httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(self.timeout),
        )
        logger.info(
            "PlantIdClient initialized: url=%s timeout=%.1fs attempts=%d configured=%s",
            self.api_url,
            self.timeout,
            self.max_attempts,
            bool(self.api_key),
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def identify(self, image: EmbeddedImage) -> IdentificationResult:
        """
        Identify the plant in `image`.

        Raises:
            IdentificationTimeoutError: deadline exceeded
            IdentificationError: not configured, upstream error, no match,
                or a response body that does not have the expected shape
        """
        rid = request_id_var.get("") or str(uuid.uuid4())[:8]

        if not self.configured:
            raise IdentificationError(
                message="Plant identification is not configured",
                context={"request_id": rid},
            )

        payload = {"images": [image.data], "plant_details": PLANT_DETAILS}
        logger.info(
            "[%s] Sending %s image (%d bytes) to Plant.id",
            rid,
            image.mime_type,
            image.size,
        )

        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._post(payload),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("[%s] Plant.id call timed out after %.1fs", rid, self.timeout)
            raise IdentificationTimeoutError(timeout=self.timeout, context={"request_id": rid})
        except httpx.HTTPError as e:
            logger.warning("[%s] Plant.id unreachable: %s", rid, str(e))
            raise IdentificationError(
                upstream_message="Identification service unreachable",
                context={"request_id": rid, "error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            message = _upstream_message(response)
            logger.warning(
                "[%s] Plant.id returned %d after %.0fms: %s",
                rid,
                response.status_code,
                duration_ms,
                message,
            )
            raise IdentificationError(
                upstream_message=message,
                context={"request_id": rid, "status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError:
            raise IdentificationError(
                upstream_message="Unreadable response from identification service",
                context={"request_id": rid},
            )

        suggestions = data.get("suggestions") if isinstance(data, dict) else None
        if not isinstance(data, dict) or (suggestions is not None and not isinstance(suggestions, list)):
            logger.warning("[%s] Plant.id response has an unexpected shape", rid)
            raise IdentificationError(
                upstream_message=UNUSABLE_RESPONSE,
                context={"request_id": rid},
            )
        if not suggestions:
            logger.info("[%s] Plant.id found no matches (%.0fms)", rid, duration_ms)
            raise IdentificationError(
                upstream_message="No plant matches found",
                context={"request_id": rid},
            )

        top = suggestions[0]
        result = normalize_suggestion(top)
        logger.info("[%s] Identified '%s' in %.0fms", rid, result.name, duration_ms)
        logger.debug("[%s] Top suggestion probability: %s", rid, top.get("probability"))
        return result

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_connection_failure),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=settings.retry_min_wait,
                max=settings.retry_max_wait,
                jitter=1,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._http.post(
                    self.api_url,
                    json=payload,
                    headers={"Api-Key": self.api_key},
                )
        return response

    async def aclose(self) -> None:
        await self._http.aclose()
