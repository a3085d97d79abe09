"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client
from supabase.client import ClientOptions

from meditect.adapters.fernet_credential_store import FernetCredentialStore
from meditect.adapters.openai_recognition_client import OpenAIRecognitionClient
from meditect.adapters.supabase_auth_gateway import SupabaseAuthGateway
from meditect.adapters.supabase_auth_storage import CredentialStoreAuthStorage
from meditect.adapters.supabase_medicine_repository import (
    SupabaseMedicineRepository,
)
from meditect.adapters.supabase_profile_repository import SupabaseProfileRepository
from meditect.config import Settings
from meditect.services.auth import AuthWorkflow, CredentialStore
from meditect.services.medicines import MedicineService
from meditect.services.recognition import RecognitionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    credential_store: CredentialStore
    auth_workflow: AuthWorkflow
    medicine_service: MedicineService
    recognition_service: RecognitionService | None
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    credential_store = FernetCredentialStore.create(
        resolved_settings.resolved_store_path(),
        resolved_settings.credential_store_key,
    )
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_anon_key,
        options=ClientOptions(
            storage=CredentialStoreAuthStorage(credential_store),
            auto_refresh_token=True,
            persist_session=True,
        ),
    )
    auth_workflow = AuthWorkflow(
        auth_gateway=SupabaseAuthGateway(supabase_client),
        profile_repository=SupabaseProfileRepository(supabase_client),
        credential_store=credential_store,
        session_key=resolved_settings.session_key,
        profile_fetch_attempts=resolved_settings.profile_fetch_attempts,
        profile_fetch_backoff_seconds=resolved_settings.profile_fetch_backoff_seconds,
    )
    medicine_service = MedicineService(
        repository=SupabaseMedicineRepository(supabase_client),
        expiry_warning_days=resolved_settings.expiry_warning_days,
    )

    recognition_client: OpenAIRecognitionClient | None = None
    recognition_service: RecognitionService | None = None
    if resolved_settings.openai_api_key:
        recognition_client = OpenAIRecognitionClient.create(
            resolved_settings.openai_api_key
        )
        recognition_service = RecognitionService(
            client=recognition_client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        )

    async def close_resources() -> None:
        if recognition_client is not None:
            await recognition_client.close()

    return AppContainer(
        settings=resolved_settings,
        credential_store=credential_store,
        auth_workflow=auth_workflow,
        medicine_service=medicine_service,
        recognition_service=recognition_service,
        close_resources=close_resources,
    )
