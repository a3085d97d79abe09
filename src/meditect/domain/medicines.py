"""Domain models for the medicine catalogue."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class MedicineDraft:
    """Fields accepted by the user for a new medicine record."""

    name: str
    expiry_date: date
    manufacturer: str = ""
    batch_number: str = ""
    dosage: str = ""
    description: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class MedicineRecord:
    """A scanned medicine belonging to a user."""

    id: UUID
    user_id: UUID
    name: str
    manufacturer: str
    expiry_date: date
    batch_number: str
    dosage: str
    description: str | None
    image_url: str | None
    created_at: datetime
    scanned_at: datetime


@dataclass(frozen=True)
class ExpiryStatus:
    """Expiry state of a medicine relative to a given day."""

    is_expired: bool
    days_until_expiry: int
