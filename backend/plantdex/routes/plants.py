"""
PlantDex Backend — Plant Route Handlers
========================================

What:  The four /api/plants endpoints.
Who:   The PlantDex web client (collection grid, scan dialog, plant card).

Every handler depends on require_user, so 401 always wins over 400/403/404.
"""

import json
import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from plantdex.dependencies import get_plant_service, require_user
from plantdex.exceptions import ValidationError
from plantdex.schemas.common import ErrorResponse
from plantdex.schemas.plant import PlantRecord, PlantSubmission
from plantdex.schemas.user import UserRecord
from plantdex.services.plant_service import PlantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Plants"])

UNAUTHENTICATED = {401: {"description": "Not signed in", "model": ErrorResponse}}
OWNED_RECORD_ERRORS = {
    **UNAUTHENTICATED,
    403: {"description": "Plant belongs to another user", "model": ErrorResponse},
    404: {"description": "Plant not found", "model": ErrorResponse},
}


@router.get(
    "/plants",
    response_model=List[PlantRecord],
    responses=UNAUTHENTICATED,
    summary="List the caller's plants",
)
async def list_plants(
    user: UserRecord = Depends(require_user),
    service: PlantService = Depends(get_plant_service),
) -> List[PlantRecord]:
    return await service.list_plants(user.id)


@router.get(
    "/plants/{plant_id}",
    response_model=PlantRecord,
    responses=OWNED_RECORD_ERRORS,
    summary="Get one of the caller's plants",
)
async def get_plant(
    plant_id: int,
    response: Response,
    user: UserRecord = Depends(require_user),
    service: PlantService = Depends(get_plant_service),
) -> PlantRecord:
    plant = await service.get_plant(user.id, plant_id)
    # Records never change after creation, but are private to one user
    response.headers["Cache-Control"] = "private, max-age=3600"
    return plant


@router.post(
    "/plants",
    status_code=201,
    response_model=PlantRecord,
    responses={
        **UNAUTHENTICATED,
        400: {"description": "Invalid submission", "model": ErrorResponse},
        500: {"description": "Identification or storage failed", "model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": PlantSubmission.model_json_schema(by_alias=True)}},
        }
    },
    summary="Add a plant from a photo or manual entry",
    description=(
        "imageUrl may be a regular URL or a data URI holding the photo. Data URIs are "
        "sent to Plant.id and the identified names replace any submitted text; if "
        "identification fails, submitted name and scientificName are used instead."
    ),
)
async def create_plant(
    request: Request,
    user: UserRecord = Depends(require_user),
    service: PlantService = Depends(get_plant_service),
) -> PlantRecord:
    # Body read by hand so the session check above runs before any parsing
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(message="Request body must be valid JSON")

    return await service.submit(user.id, payload)


@router.delete(
    "/plants/{plant_id}",
    status_code=204,
    response_class=Response,
    responses=OWNED_RECORD_ERRORS,
    summary="Delete one of the caller's plants",
)
async def delete_plant(
    plant_id: int,
    user: UserRecord = Depends(require_user),
    service: PlantService = Depends(get_plant_service),
) -> Response:
    await service.delete_plant(user.id, plant_id)
    return Response(status_code=204)
