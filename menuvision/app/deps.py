# menuvision/app/deps.py (process-wide clients exposed as FastAPI dependencies)

from __future__ import annotations
from supabase import create_client, Client
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from menuvision.app.config import settings
from menuvision.app.infra.db.supabase_menu_repo import (
    SupabaseMenuItemRepository,
    SupabaseMenuSourceRepository,
    SupabasePhotoRepository,
    SupabaseRestaurantAccessRepository,
)
from menuvision.app.infra.db.base import PhotoRepository
from menuvision.app.infra.storage.base import StorageProvider
from menuvision.app.infra.storage.supabase_provider import SupabaseStorageProvider
from menuvision.app.services.catalog_service import CatalogService
from menuvision.app.services.ingestion_service import MenuIngestionService
from menuvision.app.services.photo_classifier import PhotoClassifier
from menuvision.app.services.source_lifecycle import SourceLifecycle
from menuvision.services import pipeline_queue
from menuvision.services.extractor import MenuExtractor
from menuvision.services.fetcher import ContentFetcher
from menuvision.services.gemini_client import GeminiClient, LanguageModelClient

_client: Client | None = None
_llm: LanguageModelClient | None = None
_fetcher: ContentFetcher | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def get_llm() -> LanguageModelClient:
    global _llm
    if _llm is None:
        _llm = GeminiClient(settings.GEMINI_API_KEY, model_name=settings.GEMINI_MODEL)
    return _llm


def get_fetcher() -> ContentFetcher:
    global _fetcher
    if _fetcher is None:
        _fetcher = ContentFetcher(timeout_seconds=settings.FETCH_TIMEOUT_SECONDS)
    return _fetcher


def get_pipeline_queue() -> pipeline_queue.PipelineQueue:
    return pipeline_queue.get_queue()


def get_storage(supa: Client = Depends(get_supabase)) -> StorageProvider:
    return SupabaseStorageProvider(supa, bucket_name=settings.PHOTO_BUCKET)


def get_photo_repository(supa: Client = Depends(get_supabase)) -> PhotoRepository:
    return SupabasePhotoRepository(supa)


def get_catalog_service(supa: Client = Depends(get_supabase)) -> CatalogService:
    return CatalogService(SupabaseMenuItemRepository(supa))


def get_extractor(llm: LanguageModelClient = Depends(get_llm)) -> MenuExtractor:
    return MenuExtractor(llm, model=settings.GEMINI_MODEL)


def get_ingestion_service(
    supa: Client = Depends(get_supabase),
    catalog: CatalogService = Depends(get_catalog_service),
    extractor: MenuExtractor = Depends(get_extractor),
) -> MenuIngestionService:
    return MenuIngestionService(
        SupabaseRestaurantAccessRepository(supa),
        SupabaseMenuSourceRepository(supa),
        catalog,
        extractor,
    )


def get_source_lifecycle(
    supa: Client = Depends(get_supabase),
    fetcher: ContentFetcher = Depends(get_fetcher),
    extractor: MenuExtractor = Depends(get_extractor),
    catalog: CatalogService = Depends(get_catalog_service),
) -> SourceLifecycle:
    return SourceLifecycle(SupabaseMenuSourceRepository(supa), fetcher, extractor, catalog)


def get_photo_classifier(
    supa: Client = Depends(get_supabase),
    fetcher: ContentFetcher = Depends(get_fetcher),
    llm: LanguageModelClient = Depends(get_llm),
) -> PhotoClassifier:
    return PhotoClassifier(
        SupabaseMenuItemRepository(supa),
        SupabasePhotoRepository(supa),
        fetcher,
        llm,
        model=settings.GEMINI_MODEL,
        gate_model=settings.GEMINI_GATE_MODEL,
    )


auth_scheme = HTTPBearer(auto_error=False)

class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None

async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Takes `Authorization: Bearer <access_token>` issued by Supabase,
    validates it against GoTrue and returns the minimal user record.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = cred.credentials
    try:
        res = supa.auth.get_user(token)
        user = res.user
        if not user:
            raise HTTPException(status_code=401, detail="Invalid token")

        name = None
        meta = getattr(user, "user_metadata", None) or {}
        if isinstance(meta, dict):
            name = meta.get("name")

        return CurrentUser(id=str(user.id), email=user.email, name=name)
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid/expired token")
