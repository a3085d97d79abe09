"""Medicine catalogue services."""

import calendar
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID

from meditect.domain.medicines import ExpiryStatus, MedicineDraft, MedicineRecord
from meditect.domain.recognition import ScanResult
from meditect.errors import (
    DataServiceError,
    InvalidMedicineError,
    MedicineNotFoundError,
    MedicineSaveFailedError,
)

logger = logging.getLogger(__name__)

_YEAR_MONTH_PARTS = 2


class MedicineRepository(Protocol):
    """Persistence interface for the medicines table."""

    def create(
        self, user_id: UUID, draft: MedicineDraft, scanned_at: datetime
    ) -> MedicineRecord:
        """Insert a medicine row and return it."""

    def get(self, user_id: UUID, medicine_id: UUID) -> MedicineRecord | None:
        """Return a medicine owned by the user, if present."""

    def list_for_user(
        self, user_id: UUID, limit: int | None = None
    ) -> list[MedicineRecord]:
        """Return the user's medicines, most recently scanned first."""

    def list_expiring(
        self, user_id: UUID, start: date, end: date, limit: int
    ) -> list[MedicineRecord]:
        """Return medicines expiring within [start, end], soonest first."""

    def delete(self, user_id: UUID, medicine_id: UUID) -> None:
        """Delete a medicine owned by the user."""


@dataclass
class MedicineService:
    """Application service for the user's medicine catalogue."""

    repository: MedicineRepository
    expiry_warning_days: int = 90

    def save(self, user_id: UUID, draft: MedicineDraft) -> MedicineRecord:
        """Store an accepted medicine, stamping the scan time."""
        try:
            return self.repository.create(
                user_id, draft, scanned_at=datetime.now(tz=UTC)
            )
        except DataServiceError as exc:
            logger.exception("Failed to save medicine", extra={"user_id": str(user_id)})
            raise MedicineSaveFailedError(exc.message) from exc

    def save_scan(
        self, user_id: UUID, result: ScanResult, image_url: str | None = None
    ) -> MedicineRecord:
        """Store a scan result the user accepted."""
        return self.save(user_id, draft_from_scan(result, image_url=image_url))

    def recent(self, user_id: UUID, limit: int = 5) -> list[MedicineRecord]:
        """Return the most recently scanned medicines."""
        return self.repository.list_for_user(user_id, limit=limit)

    def upcoming_expirations(
        self,
        user_id: UUID,
        within_days: int | None = None,
        limit: int = 5,
        today: date | None = None,
    ) -> list[MedicineRecord]:
        """Return medicines expiring between today and the warning horizon."""
        start = today or datetime.now(tz=UTC).date()
        days = self.expiry_warning_days if within_days is None else within_days
        return self.repository.list_expiring(
            user_id, start=start, end=start + timedelta(days=days), limit=limit
        )

    def history(self, user_id: UUID, query: str | None = None) -> list[MedicineRecord]:
        """Return all medicines, optionally filtered by name or manufacturer."""
        medicines = self.repository.list_for_user(user_id)
        needle = (query or "").strip().lower()
        if not needle:
            return medicines
        return [
            medicine
            for medicine in medicines
            if needle in medicine.name.lower()
            or needle in medicine.manufacturer.lower()
        ]

    def get(self, user_id: UUID, medicine_id: UUID) -> MedicineRecord:
        """Return a medicine or raise MedicineNotFoundError."""
        medicine = self.repository.get(user_id, medicine_id)
        if medicine is None:
            raise MedicineNotFoundError(str(medicine_id))
        return medicine

    def delete(self, user_id: UUID, medicine_id: UUID) -> None:
        """Delete a medicine from the user's records."""
        self.repository.delete(user_id, medicine_id)
        logger.info(
            "Deleted medicine",
            extra={"user_id": str(user_id), "medicine_id": str(medicine_id)},
        )

    @staticmethod
    def expiry_status(
        medicine: MedicineRecord, today: date | None = None
    ) -> ExpiryStatus:
        """Return whether the medicine has expired and how many days remain."""
        current = today or datetime.now(tz=UTC).date()
        days = (medicine.expiry_date - current).days
        return ExpiryStatus(is_expired=days < 0, days_until_expiry=days)


def draft_from_scan(result: ScanResult, image_url: str | None = None) -> MedicineDraft:
    """Build a draft from a scan guess; name and expiry date are required."""
    guess = result.medicine
    name = (guess.name or "").strip()
    expiry = parse_expiry_date(guess.expiry_date)
    missing = []
    if not name:
        missing.append("name")
    if expiry is None:
        missing.append("expiry_date")
    if missing:
        raise InvalidMedicineError(missing)
    return MedicineDraft(
        name=name,
        expiry_date=expiry,
        manufacturer=(guess.manufacturer or "").strip(),
        batch_number=(guess.batch_number or "").strip(),
        dosage=(guess.dosage or "").strip(),
        image_url=image_url,
    )


def parse_expiry_date(raw: str | None) -> date | None:
    """Parse YYYY-MM-DD, or YYYY-MM as the last day of that month."""
    if not raw:
        return None
    cleaned = raw.strip()
    try:
        return date.fromisoformat(cleaned[:10])
    except ValueError:
        pass
    parts = cleaned.split("-")
    if len(parts) != _YEAR_MONTH_PARTS or not all(part.isdigit() for part in parts):
        return None
    year, month = int(parts[0]), int(parts[1])
    try:
        return date(year, month, calendar.monthrange(year, month)[1])
    except ValueError:
        return None
