"""Supabase-backed medicine repository."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from meditect.adapters.supabase_errors import DATA_ERRORS, translate_data_error
from meditect.domain.medicines import MedicineDraft, MedicineRecord
from meditect.errors import DataServiceError
from meditect.services.medicines import MedicineRepository

_COLUMNS = (
    "id, name, manufacturer, expiryDate, batchNumber, dosage, description, "
    "imageUrl, userId, createdAt, scannedAt"
)


@dataclass
class SupabaseMedicineRepository(MedicineRepository):
    """Supabase implementation for the medicines table."""

    client: Client

    def create(
        self, user_id: UUID, draft: MedicineDraft, scanned_at: datetime
    ) -> MedicineRecord:
        """Insert a medicine row and return it."""
        payload = {
            "name": draft.name,
            "manufacturer": draft.manufacturer,
            "expiryDate": draft.expiry_date.isoformat(),
            "batchNumber": draft.batch_number,
            "dosage": draft.dosage,
            "description": draft.description,
            "imageUrl": draft.image_url,
            "userId": str(user_id),
            "scannedAt": scanned_at.isoformat(),
        }
        try:
            response = self.client.table("medicines").insert(payload).execute()
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc
        if not response.data:
            raise DataServiceError("Insert returned no medicine row")
        return _parse_medicine(response.data[0])

    def get(self, user_id: UUID, medicine_id: UUID) -> MedicineRecord | None:
        """Return a medicine by id, scoped to its owner."""
        try:
            response = (
                self.client.table("medicines")
                .select(_COLUMNS)
                .eq("id", str(medicine_id))
                .eq("userId", str(user_id))
                .limit(1)
                .execute()
            )
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc
        if not response.data:
            return None
        return _parse_medicine(response.data[0])

    def list_for_user(
        self, user_id: UUID, limit: int | None = None
    ) -> list[MedicineRecord]:
        """Return medicines, most recently scanned first."""
        query = (
            self.client.table("medicines")
            .select(_COLUMNS)
            .eq("userId", str(user_id))
            .order("scannedAt", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        try:
            response = query.execute()
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc
        return [_parse_medicine(row) for row in response.data or []]

    def list_expiring(
        self, user_id: UUID, start: date, end: date, limit: int
    ) -> list[MedicineRecord]:
        """Return medicines expiring between two dates, soonest first."""
        try:
            response = (
                self.client.table("medicines")
                .select(_COLUMNS)
                .eq("userId", str(user_id))
                .gte("expiryDate", start.isoformat())
                .lte("expiryDate", end.isoformat())
                .order("expiryDate", desc=False)
                .limit(limit)
                .execute()
            )
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc
        return [_parse_medicine(row) for row in response.data or []]

    def delete(self, user_id: UUID, medicine_id: UUID) -> None:
        """Delete a medicine row."""
        try:
            self.client.table("medicines").delete().eq("id", str(medicine_id)).eq(
                "userId", str(user_id)
            ).execute()
        except DATA_ERRORS as exc:
            raise translate_data_error(exc) from exc


def _parse_medicine(row: dict[str, object]) -> MedicineRecord:
    return MedicineRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["userId"])),
        name=str(row.get("name") or ""),
        manufacturer=str(row.get("manufacturer") or ""),
        expiry_date=date.fromisoformat(str(row["expiryDate"])[:10]),
        batch_number=str(row.get("batchNumber") or ""),
        dosage=str(row.get("dosage") or ""),
        description=row.get("description") or None,
        image_url=row.get("imageUrl") or None,
        created_at=datetime.fromisoformat(str(row["createdAt"])),
        scanned_at=datetime.fromisoformat(str(row["scannedAt"])),
    )
