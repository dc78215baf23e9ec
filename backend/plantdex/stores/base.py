"""
PlantDex Backend — Abstract Record Store
=========================================

What:  The contract both store backends satisfy.
Why:   PlantService and the auth service depend on this interface only, so
       the durable and the in-memory backends are interchangeable and the
       same contract tests run against both.

Contract:
    - create_plant assigns a strictly increasing id and a created_at that
      never goes backwards, even under concurrent calls
    - list_plants returns only the given user's records, in insertion order
    - lookups return None for missing rows; they never raise NotFoundError
      (that is a service-level decision)
    - unexpected backend failures surface as StorageError
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from plantdex.schemas.plant import PlantFields, PlantRecord
from plantdex.schemas.user import UserRecord


class RecordStore(ABC):
    """Persistence for users and their plant records."""

    # ── Users ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def create_user(self, username: str, password_hash: str) -> UserRecord:
        """
        Insert a new user.

        Raises:
            ConflictError: the username is already taken.
        """
        ...

    # ── Plants ────────────────────────────────────────────────────────────

    @abstractmethod
    async def list_plants(self, user_id: int) -> List[PlantRecord]:
        ...

    @abstractmethod
    async def get_plant(self, plant_id: int) -> Optional[PlantRecord]:
        ...

    @abstractmethod
    async def create_plant(self, user_id: int, fields: PlantFields) -> PlantRecord:
        ...

    @abstractmethod
    async def delete_plant(self, plant_id: int) -> bool:
        """Delete a record. Returns False when no such record existed."""
        ...

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    async def ping(self) -> bool:
        """Cheap connectivity check for /health."""
        return True

    async def close(self) -> None:
        """Release connections. Called once at application shutdown."""
        return None
