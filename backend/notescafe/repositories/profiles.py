"""User profile documents, one per identity id at ``users/{uid}``."""

from typing import Any

from notescafe.db.store import SERVER_TIMESTAMP, DocumentStore
from notescafe.schemas.profile import ProfileCreate, ProfileUpdate, UserProfile

USERS_COLLECTION = "users"


class ProfileRepository:
    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def path(uid: str) -> str:
        return f"{USERS_COLLECTION}/{uid}"

    async def get(self, uid: str) -> UserProfile | None:
        """Return the stored profile, or None when there is none."""
        snapshot = await self.store.get(self.path(uid))
        if not snapshot.exists:
            return None
        return UserProfile.model_validate({"uid": uid, **snapshot.to_dict()})

    async def save(self, uid: str, profile: ProfileCreate) -> UserProfile:
        """
        Write the full profile document.

        Always stamps both timestamps and marks the profile complete. The
        returned record carries the caller's fields; timestamps are filled in
        by the server and show up on the next read.
        """
        fields = profile.model_dump(mode="json", by_alias=True, exclude_none=True)
        await self.store.set(
            self.path(uid),
            {
                **fields,
                "uid": uid,
                "createdAt": SERVER_TIMESTAMP,
                "updatedAt": SERVER_TIMESTAMP,
                "isProfileComplete": True,
            },
        )
        return UserProfile.model_validate({**fields, "uid": uid, "isProfileComplete": True})

    async def update(self, uid: str, changes: ProfileUpdate) -> dict[str, Any]:
        """Merge the fields the caller set and restamp ``updatedAt``. Returns the merged fields."""
        fields = changes.model_dump(mode="json", by_alias=True, exclude_unset=True)
        await self.store.update(self.path(uid), {**fields, "updatedAt": SERVER_TIMESTAMP})
        return fields
