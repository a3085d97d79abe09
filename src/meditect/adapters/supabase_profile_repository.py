"""Supabase-backed profile repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from meditect.adapters.supabase_errors import DATA_ERRORS, translate_data_error
from meditect.domain.models import ProfileDraft, UserProfile
from meditect.services.auth import ProfileRepository

_COLUMNS = "id, email, name, avatar_url, created_at"


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the profiles table."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user id, if present."""
        try:
            response = (
                self.client.table("profiles")
                .select(_COLUMNS)
                .eq("id", str(user_id))
                .limit(1)
                .execute()
            )
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def insert_profile(self, draft: ProfileDraft) -> None:
        """Insert a new profile row."""
        try:
            self.client.table("profiles").insert(_payload(draft)).execute()
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc

    def upsert_profile(self, draft: ProfileDraft) -> None:
        """Insert a profile row unless one with the same id already exists."""
        try:
            self.client.table("profiles").upsert(
                _payload(draft), on_conflict="id", ignore_duplicates=True
            ).execute()
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc


def _payload(draft: ProfileDraft) -> dict[str, object]:
    return {"id": str(draft.id), "email": draft.email, "name": draft.name}


def _parse_profile(row: dict[str, object]) -> UserProfile:
    return UserProfile(
        id=UUID(str(row["id"])),
        email=str(row.get("email") or ""),
        name=str(row.get("name") or ""),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        avatar_url=row.get("avatar_url") or None,
    )
