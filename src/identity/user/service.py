"""Identity service: owns the ``users`` collection."""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from identity.user.user import User, user_from_record
from shared.store import USERS, Store

logger = structlog.get_logger(__name__)


class IdentityService:
    def __init__(self, store: Store):
        self.store = store

    async def get_users(self) -> list[User]:
        return [user_from_record(record) for record in await self.store.get_collection(USERS)]

    async def get_user(self, user_id) -> User:
        record = await self.store.get(USERS, user_id)
        if record is None:
            raise ObjectNotFoundError({"_entity": f"User {user_id} not found."})
        return user_from_record(record)

    async def find_by_email(self, email: str) -> User | None:
        wanted = email.strip().lower()
        for record in await self.store.get_collection(USERS):
            if (record.get("email") or "").lower() == wanted:
                return user_from_record(record)
        return None

    async def add_user(self, data: dict) -> User:
        user = user_from_record(data)

        async with self.store.lock(USERS):
            if await self.find_by_email(user.email) is not None:
                raise ValidationError({"email": [f"A user with email {user.email} already exists"]})
            await self.store.upsert(USERS, user.to_dict())

        logger.info("User added", user_id=str(user.id), role=user.role)
        return user

    async def update_user(self, user_id, changes: dict) -> User:
        async with self.store.lock(USERS):
            record = await self.store.get(USERS, user_id)
            if record is None:
                raise ObjectNotFoundError({"_entity": f"User {user_id} not found."})

            user = user_from_record({**record, **changes, "id": record["id"]})
            await self.store.upsert(USERS, user.to_dict())

        logger.info("User updated", user_id=str(user_id), fields=sorted(changes))
        return user

    async def delete_user(self, user_id) -> None:
        async with self.store.lock(USERS):
            if await self.store.get(USERS, user_id) is None:
                raise ObjectNotFoundError({"_entity": f"User {user_id} not found."})
            await self.store.delete(USERS, user_id)

        logger.info("User deleted", user_id=str(user_id))
