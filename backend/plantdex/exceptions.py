"""
PlantDex Backend — Custom Exception Hierarchy
==============================================

What:  Application exceptions, one per failure class of the plant pipeline.
How:   Each carries a user-safe `message` and a `context` dict that is logged
       but only returned to the client where the handler says so.
Who:   Raised by services, stores and the access boundary; translated to
       JSON responses by the handlers registered in main.py.

Exception Hierarchy:
    PlantDexError (base)
    ├── ValidationError             → 400 (payload shape, malformed image)
    ├── ConflictError               → 400 (username already taken)
    ├── UnauthenticatedError        → 401 (no session)
    ├── ForbiddenError              → 403 (record owned by someone else)
    ├── NotFoundError               → 404
    ├── IdentificationError         → 500 (Plant.id failed or found nothing)
    │   └── IdentificationTimeoutError
    └── StorageError                → 500 (generic message to client)
"""

from typing import Any, Dict, List, Optional


class PlantDexError(Exception):
    """
    Base exception for all PlantDex application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PlantDexError):
    """
    Raised when client input fails validation.

    `errors` holds the per-field problems exactly as the validator reported
    them, so the client sees what was wrong with each field.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        if errors:
            ctx["errors"] = errors
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = errors or []


class ConflictError(PlantDexError):
    """Raised when a unique value (e.g. a username) is already taken."""

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthenticatedError(PlantDexError):
    """
    Raised when a request has no valid session.

    Always checked first: nothing about the requested resource is looked
    up or revealed before the caller is known.
    """

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message)


class ForbiddenError(PlantDexError):
    """
    Raised when the record exists but belongs to another user.

    The context deliberately carries only the resource kind and id the
    caller already knows; never the owner.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
    ):
        ctx: Dict[str, Any] = {"resource": resource}
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(
            message=f"You do not have access to this {resource}",
            context=ctx,
        )


class NotFoundError(PlantDexError):
    """
    Raised when a requested resource does not exist.

    Stores return None for missing rows; the service layer turns that into
    this exception so routes stay free of lookups.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class IdentificationError(PlantDexError):
    """
    Raised when the plant identification call fails.

    When:  Upstream returned non-2xx, returned zero suggestions, sent an
           unreadable body, or could not be reached.
    HTTP:  500 when it reaches the client. The Plant Service recovers from it
           locally when the caller supplied enough manual data.

    `upstream_message` is the identification service's own explanation when
    it sent one.
    """

    def __init__(
        self,
        message: str = "Plant identification failed",
        upstream_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if upstream_message:
            ctx["upstream_message"] = upstream_message
            message = f"{message}: {upstream_message}"
        super().__init__(message=message, context=ctx)
        self.upstream_message = upstream_message


class IdentificationTimeoutError(IdentificationError):
    """Raised when the identification call exceeds IDENTIFICATION_TIMEOUT."""

    def __init__(
        self,
        timeout: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["timeout_seconds"] = timeout
        super().__init__(
            message=f"Plant identification timed out after {timeout:g} seconds",
            context=ctx,
        )
        self.timeout = timeout


class StorageError(PlantDexError):
    """
    Raised when a store operation fails unexpectedly.

    Security Note:
        The message returned to the client is always generic. Driver errors,
        SQL and constraint names are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
