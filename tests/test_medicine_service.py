from datetime import UTC, date, datetime, timedelta
from uuid import uuid4

import pytest

from meditect.domain.medicines import MedicineDraft
from meditect.domain.recognition import MedicineGuess, ScanResult
from meditect.errors import (
    DataServiceError,
    InvalidMedicineError,
    MedicineNotFoundError,
    MedicineSaveFailedError,
)
from meditect.services.medicines import MedicineService, parse_expiry_date
from tests.fakes import InMemoryMedicineRepository

TODAY = date(2025, 6, 1)


def _scan(**fields) -> ScanResult:
    return ScanResult(medicine=MedicineGuess(**fields), confidence=0.8)


def test_save_stamps_scan_time(medicine_service: MedicineService) -> None:
    user_id = uuid4()
    before = datetime.now(tz=UTC)

    record = medicine_service.save(
        user_id, MedicineDraft(name="Ibuprofen", expiry_date=date(2026, 1, 31))
    )

    assert record.user_id == user_id
    assert record.scanned_at >= before
    assert medicine_service.get(user_id, record.id) == record


def test_save_failure_raises_save_error(
    medicine_service: MedicineService, medicine_repository: InMemoryMedicineRepository
) -> None:
    medicine_repository.create_error = DataServiceError("insert failed")

    with pytest.raises(MedicineSaveFailedError) as exc_info:
        medicine_service.save(
            uuid4(), MedicineDraft(name="Ibuprofen", expiry_date=date(2026, 1, 31))
        )

    assert exc_info.value.details["reason"] == "insert failed"


def test_save_scan_normalises_fields(medicine_service: MedicineService) -> None:
    record = medicine_service.save_scan(
        uuid4(),
        _scan(
            name=" Amoxicillin ",
            manufacturer=None,
            expiry_date="2026-02",
            batch_number="L-778",
            dosage="250 mg",
        ),
        image_url="https://cdn.example.com/scan.jpg",
    )

    assert record.name == "Amoxicillin"
    assert record.manufacturer == ""
    assert record.expiry_date == date(2026, 2, 28)
    assert record.image_url == "https://cdn.example.com/scan.jpg"


def test_save_scan_requires_name_and_expiry(medicine_service: MedicineService) -> None:
    with pytest.raises(InvalidMedicineError) as exc_info:
        medicine_service.save_scan(uuid4(), _scan(name="  ", expiry_date="soon"))

    assert exc_info.value.details["missing"] == ["name", "expiry_date"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2027-03-15", date(2027, 3, 15)),
        ("2027-03-15T00:00:00Z", date(2027, 3, 15)),
        ("2024-02", date(2024, 2, 29)),
        ("2027-13", None),
        ("03/2027", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_expiry_date(raw: str | None, expected: date | None) -> None:
    assert parse_expiry_date(raw) == expected


def test_recent_returns_latest_scans_first(
    medicine_service: MedicineService, medicine_repository: InMemoryMedicineRepository
) -> None:
    user_id = uuid4()
    scanned = datetime(2025, 5, 1, tzinfo=UTC)
    for offset, name in enumerate(["first", "second", "third", "other"]):
        owner = user_id if name != "other" else uuid4()
        medicine_repository.create(
            owner,
            MedicineDraft(name=name, expiry_date=date(2026, 1, 1)),
            scanned_at=scanned + timedelta(minutes=offset),
        )

    recent = medicine_service.recent(user_id, limit=2)

    assert [record.name for record in recent] == ["third", "second"]


def test_upcoming_expirations_uses_warning_window(
    medicine_service: MedicineService,
) -> None:
    user_id = uuid4()
    expiries = {
        "expired": TODAY - timedelta(days=1),
        "today": TODAY,
        "edge": TODAY + timedelta(days=90),
        "later": TODAY + timedelta(days=91),
        "soon": TODAY + timedelta(days=10),
    }
    for name, expiry in expiries.items():
        medicine_service.save(user_id, MedicineDraft(name=name, expiry_date=expiry))

    upcoming = medicine_service.upcoming_expirations(user_id, today=TODAY)
    narrow = medicine_service.upcoming_expirations(user_id, within_days=5, today=TODAY)

    assert [record.name for record in upcoming] == ["today", "soon", "edge"]
    assert [record.name for record in narrow] == ["today"]


def test_history_filters_by_name_or_manufacturer(
    medicine_service: MedicineService,
) -> None:
    user_id = uuid4()
    medicine_service.save(
        user_id,
        MedicineDraft(name="Aspirin", manufacturer="Bayer", expiry_date=TODAY),
    )
    medicine_service.save(
        user_id,
        MedicineDraft(name="Paracetamol", manufacturer="Acme", expiry_date=TODAY),
    )

    assert [m.name for m in medicine_service.history(user_id, "bay")] == ["Aspirin"]
    assert [m.name for m in medicine_service.history(user_id, "PARA")] == [
        "Paracetamol"
    ]
    assert len(medicine_service.history(user_id, "  ")) == 2


def test_get_unknown_medicine_raises(medicine_service: MedicineService) -> None:
    with pytest.raises(MedicineNotFoundError):
        medicine_service.get(uuid4(), uuid4())


def test_get_does_not_return_other_users_medicine(
    medicine_service: MedicineService,
) -> None:
    record = medicine_service.save(
        uuid4(), MedicineDraft(name="Aspirin", expiry_date=TODAY)
    )

    with pytest.raises(MedicineNotFoundError):
        medicine_service.get(uuid4(), record.id)


def test_delete_removes_record(medicine_service: MedicineService) -> None:
    user_id = uuid4()
    record = medicine_service.save(
        user_id, MedicineDraft(name="Aspirin", expiry_date=TODAY)
    )

    medicine_service.delete(user_id, record.id)

    assert medicine_service.history(user_id) == []


def test_expiry_status(medicine_service: MedicineService) -> None:
    record = medicine_service.save(
        uuid4(), MedicineDraft(name="Aspirin", expiry_date=TODAY)
    )

    assert MedicineService.expiry_status(record, today=TODAY).days_until_expiry == 0
    expired = MedicineService.expiry_status(record, today=TODAY + timedelta(days=3))
    assert expired.is_expired
    assert expired.days_until_expiry == -3
