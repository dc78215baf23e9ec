"""
PlantDex Backend — In-Memory Record Store
==========================================

What:  A RecordStore kept in dicts on the instance.
Who:   The test-suite, and STORE_BACKEND=memory for local demos.

All state lives on the instance; two stores never share records. Every
mutation happens under one asyncio.Lock, which is what serializes id
assignment when several submissions for the same user run concurrently.
"""

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Dict, List, Optional

from plantdex.exceptions import ConflictError
from plantdex.schemas.plant import PlantFields, PlantRecord
from plantdex.schemas.user import UserRecord
from plantdex.stores.base import RecordStore


class MemoryRecordStore(RecordStore):
    """Volatile RecordStore; contents vanish with the process."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users: Dict[int, UserRecord] = {}
        self._plants: Dict[int, PlantRecord] = {}
        self._user_ids = itertools.count(1)
        self._plant_ids = itertools.count(1)
        self._last_created_at: Optional[datetime] = None

    @property
    def backend_name(self) -> str:
        return "memory"

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self._users.values():
            if user.username == username:
                return user
        return None

    async def create_user(self, username: str, password_hash: str) -> UserRecord:
        async with self._lock:
            if any(u.username == username for u in self._users.values()):
                raise ConflictError(
                    message="Username already exists",
                    context={"username": username},
                )
            user = UserRecord(
                id=next(self._user_ids),
                username=username,
                password_hash=password_hash,
            )
            self._users[user.id] = user
            return user

    async def list_plants(self, user_id: int) -> List[PlantRecord]:
        # dicts keep insertion order, and ids are assigned in that order
        return [p for p in self._plants.values() if p.user_id == user_id]

    async def get_plant(self, plant_id: int) -> Optional[PlantRecord]:
        return self._plants.get(plant_id)

    async def create_plant(self, user_id: int, fields: PlantFields) -> PlantRecord:
        async with self._lock:
            now = datetime.now(timezone.utc)
            if self._last_created_at is not None and now < self._last_created_at:
                now = self._last_created_at
            self._last_created_at = now

            record = PlantRecord(
                id=next(self._plant_ids),
                user_id=user_id,
                created_at=now,
                **fields.model_dump(),
            )
            self._plants[record.id] = record
            return record

    async def delete_plant(self, plant_id: int) -> bool:
        async with self._lock:
            return self._plants.pop(plant_id, None) is not None
