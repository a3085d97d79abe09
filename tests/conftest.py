"""Shared test fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest
from cryptography.fernet import Fernet

from meditect.adapters.supabase_auth_storage import CredentialStoreAuthStorage
from meditect.config import Settings
from meditect.services.auth import AuthWorkflow
from meditect.services.medicines import MedicineService
from tests.fakes import (
    FakeAuthGateway,
    InMemoryCredentialStore,
    InMemoryMedicineRepository,
    InMemoryProfileRepository,
)

# Three dot-separated base64 segments, shaped like a Supabase anon JWT.
ANON_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoiYW5vbiIsImlzcyI6InN1cGFiYXNlIn0."
    "c2lnbmF0dXJlLXBsYWNlaG9sZGVy"
)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key=ANON_KEY,
        credential_store_path=tmp_path / "credentials",
        credential_store_key=Fernet.generate_key().decode("ascii"),
        openai_api_key="openai-key",
    )


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def auth_gateway(credential_store: InMemoryCredentialStore) -> FakeAuthGateway:
    return FakeAuthGateway(client_storage=CredentialStoreAuthStorage(credential_store))


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_workflow(
    auth_gateway: FakeAuthGateway,
    profile_repository: InMemoryProfileRepository,
    credential_store: InMemoryCredentialStore,
    sleeps: list[float],
) -> Callable[[], AuthWorkflow]:
    """Build fresh workflows sharing the same backend and device store."""

    def factory() -> AuthWorkflow:
        return AuthWorkflow(
            auth_gateway=auth_gateway,
            profile_repository=profile_repository,
            credential_store=credential_store,
            profile_fetch_attempts=3,
            profile_fetch_backoff_seconds=0.5,
            sleep=sleeps.append,
        )

    return factory


@pytest.fixture
def workflow(make_workflow: Callable[[], AuthWorkflow]) -> AuthWorkflow:
    return make_workflow()


@pytest.fixture
def medicine_repository() -> InMemoryMedicineRepository:
    return InMemoryMedicineRepository()


@pytest.fixture
def medicine_service(medicine_repository: InMemoryMedicineRepository) -> MedicineService:
    return MedicineService(medicine_repository, expiry_warning_days=90)
