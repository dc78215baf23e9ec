"""
PlantDex Backend — Plant Service (Business Logic Orchestrator)
===============================================================

What:  Turns a submission into a stored PlantRecord, and guards reads and
       deletes with ownership checks.
How:   Composes an IdentificationClient and a RecordStore, both injected.
Who:   Called by the /api/plants route handlers.

Submission Flow (POST /api/plants):
    ┌──────────┐    ┌────────────┐    ┌──────────────┐    ┌──────────┐
    │ Validate │───▶│ Identify?  │───▶│  Resolve     │───▶│  Store   │
    │ payload  │    │ (data URI) │    │ (table row)  │    │ (1 write)│
    └──────────┘    └────────────┘    └──────────────┘    └──────────┘

Resolution Table:
    embedded │ identified │ name+sci supplied │ outcome
    ─────────┼────────────┼───────────────────┼──────────────────────────────
    yes      │ yes        │ any               │ IDENTIFIED (caller text dropped)
    yes      │ no         │ yes               │ FALLBACK   (caller text + defaults)
    yes      │ no         │ no                │ REJECTED   (error, nothing stored)
    no       │ —          │ any               │ MANUAL     (caller text + defaults)

    In every row the stored image is the caller's imageUrl, or the
    placeholder image when none was given.

Ownership:
    get/delete check existence first (NotFoundError), then ownership
    (ForbiddenError).
"""

import enum
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from plantdex.exceptions import (
    ForbiddenError,
    IdentificationError,
    NotFoundError,
    ValidationError,
)
from plantdex.schemas.plant import (
    DEFAULT_CARE_TIPS,
    DEFAULT_HABITAT,
    DEFAULT_IMAGE_URL,
    DEFAULT_NAME,
    DEFAULT_SCIENTIFIC_NAME,
    PlantFields,
    PlantRecord,
    PlantSubmission,
)
from plantdex.services.identification import IdentificationClient, IdentificationResult
from plantdex.services.images import is_embedded_image, parse_embedded_image
from plantdex.stores.base import RecordStore

logger = logging.getLogger(__name__)


class Resolution(enum.Enum):
    IDENTIFIED = "identified"
    FALLBACK = "fallback"
    REJECTED = "rejected"
    MANUAL = "manual"


# (embedded image present, identification succeeded, fallback data present)
RESOLUTION_TABLE: Dict[Tuple[bool, bool, bool], Resolution] = {
    (True, True, True): Resolution.IDENTIFIED,
    (True, True, False): Resolution.IDENTIFIED,
    (True, False, True): Resolution.FALLBACK,
    (True, False, False): Resolution.REJECTED,
    (False, False, True): Resolution.MANUAL,
    (False, False, False): Resolution.MANUAL,
}


def choose_resolution(embedded: bool, identified: bool, has_fallback: bool) -> Resolution:
    """Look up the table row; identification is never attempted without an embedded image."""
    return RESOLUTION_TABLE[(embedded, identified and embedded, has_fallback)]


def supplied(value: Optional[str]) -> bool:
    """A field counts as supplied when it holds non-blank text."""
    return value is not None and value.strip() != ""


def _or_default(value: Optional[str], default: str) -> str:
    return value if supplied(value) else default


def validation_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """Pydantic errors reduced to JSON-safe {loc, msg, type} entries."""
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


def build_fields(
    resolution: Resolution,
    submission: PlantSubmission,
    identified: Optional[IdentificationResult] = None,
) -> PlantFields:
    """Assemble stored field values for a non-rejected table row."""
    image_url = _or_default(submission.image_url, DEFAULT_IMAGE_URL)

    if resolution is Resolution.IDENTIFIED:
        return PlantFields(
            name=identified.name,
            scientific_name=identified.scientific_name,
            habitat=identified.habitat,
            care_tips=identified.care_tips,
            image_url=image_url,
        )
    if resolution in (Resolution.FALLBACK, Resolution.MANUAL):
        return PlantFields(
            name=_or_default(submission.name, DEFAULT_NAME),
            scientific_name=_or_default(submission.scientific_name, DEFAULT_SCIENTIFIC_NAME),
            habitat=_or_default(submission.habitat, DEFAULT_HABITAT),
            care_tips=_or_default(submission.care_tips, DEFAULT_CARE_TIPS),
            image_url=image_url,
        )
    raise ValueError(f"No stored fields for resolution {resolution.value}")


class PlantService:
    """
    Business logic for plant records.

    Stateless apart from its two collaborators; one instance can serve
    concurrent requests.
    """

    def __init__(self, store: RecordStore, identifier: IdentificationClient):
        self.store = store
        self.identifier = identifier

    async def submit(self, user_id: int, payload: Mapping[str, Any]) -> PlantRecord:
        """
        Validate, optionally identify, and store a new plant for `user_id`.

        Raises:
            ValidationError: wrong field types or a malformed embedded image
                (raised before any external call or write)
            IdentificationError: identification failed and the caller did
                not supply both name and scientificName
            StorageError: the insert failed
        """
        try:
            submission = PlantSubmission.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                message="Invalid plant submission",
                errors=validation_errors(e),
            )

        embedded = is_embedded_image(submission.image_url)
        image = parse_embedded_image(submission.image_url) if embedded else None
        has_fallback = supplied(submission.name) and supplied(submission.scientific_name)

        identified: Optional[IdentificationResult] = None
        failure: Optional[IdentificationError] = None
        if image is not None:
            try:
                identified = await self.identifier.identify(image)
            except IdentificationError as e:
                failure = e

        resolution = choose_resolution(embedded, identified is not None, has_fallback)
        logger.info("Plant submission for user %d resolved as %s", user_id, resolution.value)

        if resolution is Resolution.REJECTED:
            raise failure
        if resolution is Resolution.FALLBACK:
            logger.warning(
                "Identification failed for user %d, using submitted names: %s",
                user_id,
                failure.message,
            )

        fields = build_fields(resolution, submission, identified)
        return await self.store.create_plant(user_id, fields)

    async def list_plants(self, user_id: int) -> List[PlantRecord]:
        return await self.store.list_plants(user_id)

    async def get_plant(self, user_id: int, plant_id: int) -> PlantRecord:
        """
        Fetch one record owned by `user_id`.

        Raises:
            NotFoundError: no record with that id
            ForbiddenError: the record belongs to another user
        """
        plant = await self.store.get_plant(plant_id)
        if plant is None:
            raise NotFoundError(resource="plant", resource_id=str(plant_id))
        if plant.user_id != user_id:
            logger.warning("User %d denied access to plant %d", user_id, plant_id)
            raise ForbiddenError(resource="plant", resource_id=str(plant_id))
        return plant

    async def delete_plant(self, user_id: int, plant_id: int) -> None:
        await self.get_plant(user_id, plant_id)
        if not await self.store.delete_plant(plant_id):
            # Deleted concurrently between the check and the delete
            raise NotFoundError(resource="plant", resource_id=str(plant_id))
        logger.info("Plant %d deleted by user %d", plant_id, user_id)
