# menuvision/app/routers/photos.py
"""
Photo classification trigger, called by the upload flow once a photo row exists.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from menuvision.app.config import settings
from menuvision.app.deps import (
    get_photo_classifier,
    get_photo_repository,
    get_pipeline_queue,
    get_storage,
)
from menuvision.app.domain.errors import MenuPipelineError
from menuvision.app.infra.db.base import PhotoRepository
from menuvision.app.infra.storage.base import StorageProvider
from menuvision.app.routers.errors import to_http_error
from menuvision.app.schemas.photos import ClassifyPhotoAccepted, ClassifyPhotoRequest
from menuvision.app.services.photo_classifier import PhotoClassifier
from menuvision.services.errors import ServiceError
from menuvision.services.pipeline_queue import PipelineQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/photos", tags=["photos"])


@router.post("/classify", response_model=ClassifyPhotoAccepted, status_code=status.HTTP_202_ACCEPTED)
async def classify_photo(
    payload: ClassifyPhotoRequest,
    classifier: PhotoClassifier = Depends(get_photo_classifier),
    photos: PhotoRepository = Depends(get_photo_repository),
    storage: StorageProvider = Depends(get_storage),
    queue: PipelineQueue = Depends(get_pipeline_queue),
) -> ClassifyPhotoAccepted:
    image_url = (payload.image_url or "").strip()
    file_path = (payload.file_path or "").strip()
    if not image_url and not file_path:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either image_url or file_path is required",
        )

    try:
        owned = await run_in_threadpool(photos.belongs_to, payload.photo_id, payload.restaurant_id)
    except MenuPipelineError as exc:
        raise to_http_error(exc)
    if not owned:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found for this restaurant",
        )

    try:
        if not image_url:
            image_url = await run_in_threadpool(
                storage.generate_signed_get_url,
                file_path,
                settings.SIGNED_URL_TTL_SECONDS,
            )
        await queue.submit(
            f"photo-classify:{payload.photo_id}",
            classifier.classify,
            payload.photo_id,
            payload.restaurant_id,
            image_url,
        )
    except (MenuPipelineError, ServiceError) as exc:
        raise to_http_error(exc)

    logger.info("Photo classification scheduled: photo=%s, restaurant=%s", payload.photo_id, payload.restaurant_id)
    return ClassifyPhotoAccepted(photo_id=payload.photo_id)
