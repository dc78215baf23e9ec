"""
PlantDex Backend — Request Dependencies and Access Boundary
============================================================

What:  FastAPI dependencies that hand route handlers their collaborators
       (store, identification client, services) and the signed-in user.
How:   Collaborators live on `app.state`, put there by create_app(); each
       app instance therefore has its own store.

Access Boundary:
    require_user runs before any body or path validation of the route it
    guards, so an anonymous caller learns nothing about resources (not even
    whether an id exists) and triggers no side effects.
"""

import logging

from fastapi import Depends, Request

from plantdex.exceptions import UnauthenticatedError
from plantdex.schemas.user import UserRecord
from plantdex.services.auth_service import AuthService
from plantdex.services.identification import IdentificationClient
from plantdex.services.plant_service import PlantService
from plantdex.stores.base import RecordStore

logger = logging.getLogger(__name__)

# Session key holding the signed-in user's id (the only thing stored there)
SESSION_USER_KEY = "user_id"


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_identifier(request: Request) -> IdentificationClient:
    return request.app.state.identifier


def get_plant_service(
    store: RecordStore = Depends(get_store),
    identifier: IdentificationClient = Depends(get_identifier),
) -> PlantService:
    return PlantService(store=store, identifier=identifier)


def get_auth_service(store: RecordStore = Depends(get_store)) -> AuthService:
    return AuthService(store=store)


async def require_user(
    request: Request,
    store: RecordStore = Depends(get_store),
) -> UserRecord:
    """
    The signed-in user, or UnauthenticatedError.

    A session pointing at a user that no longer resolves is cleared rather
    than trusted.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        raise UnauthenticatedError()

    user = await store.get_user(user_id)
    if user is None:
        logger.warning("Session referenced unknown user %s; clearing it", user_id)
        request.session.clear()
        raise UnauthenticatedError()
    return user
