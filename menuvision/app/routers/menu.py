# menuvision/app/routers/menu.py
"""
Manager routes: menu sources, synchronous image preview and catalog edits.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from starlette.concurrency import run_in_threadpool

from menuvision.app.deps import (
    CurrentUser,
    get_current_user,
    get_ingestion_service,
    get_pipeline_queue,
    get_source_lifecycle,
)
from menuvision.app.domain.errors import MenuPipelineError
from menuvision.app.domain.models import ImageInput, MenuSource
from menuvision.app.routers.errors import to_http_error
from menuvision.app.schemas.menu import (
    MenuItemPayload,
    MenuItemResponse,
    MenuSourceResponse,
    ParseImageResponse,
    RegisterSourceRequest,
    ReprocessRequest,
    SaveMenuItemRequest,
)
from menuvision.app.services.ingestion_service import MenuIngestionService
from menuvision.app.services.source_lifecycle import SourceLifecycle
from menuvision.services.errors import ServiceError
from menuvision.services.pipeline_queue import PipelineQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/menu", tags=["menu"])

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}


async def _schedule_lifecycle(queue: PipelineQueue, lifecycle: SourceLifecycle, source: MenuSource) -> None:
    await queue.submit(f"menu-source:{source.id}", lifecycle.run, source.id, source.restaurant_id)


@router.post("/sources", response_model=MenuSourceResponse, status_code=status.HTTP_202_ACCEPTED)
async def register_source(
    payload: RegisterSourceRequest,
    user: CurrentUser = Depends(get_current_user),
    service: MenuIngestionService = Depends(get_ingestion_service),
    lifecycle: SourceLifecycle = Depends(get_source_lifecycle),
    queue: PipelineQueue = Depends(get_pipeline_queue),
) -> MenuSourceResponse:
    """
    Register a menu page and start ingestion in the background.
    The response carries the `pending` source; poll `/menu/sources/latest`.
    """
    try:
        source = await run_in_threadpool(service.register_url_source, user.id, payload.restaurant_id, payload.url)
        await _schedule_lifecycle(queue, lifecycle, source)
    except (MenuPipelineError, ServiceError) as exc:
        raise to_http_error(exc)
    return MenuSourceResponse.from_domain(source)


@router.post("/reprocess", response_model=MenuSourceResponse, status_code=status.HTTP_202_ACCEPTED)
async def reprocess_source(
    payload: ReprocessRequest,
    user: CurrentUser = Depends(get_current_user),
    service: MenuIngestionService = Depends(get_ingestion_service),
    lifecycle: SourceLifecycle = Depends(get_source_lifecycle),
    queue: PipelineQueue = Depends(get_pipeline_queue),
) -> MenuSourceResponse:
    try:
        source = await run_in_threadpool(service.reprocess, user.id, payload.restaurant_id)
        await _schedule_lifecycle(queue, lifecycle, source)
    except (MenuPipelineError, ServiceError) as exc:
        raise to_http_error(exc)
    return MenuSourceResponse.from_domain(source)


@router.get("/sources/latest", response_model=MenuSourceResponse)
async def latest_source(
    restaurant_id: str = Query(..., min_length=1),
    user: CurrentUser = Depends(get_current_user),
    service: MenuIngestionService = Depends(get_ingestion_service),
) -> MenuSourceResponse:
    try:
        source: Optional[MenuSource] = await run_in_threadpool(service.get_latest_source, user.id, restaurant_id)
    except MenuPipelineError as exc:
        raise to_http_error(exc)
    if source is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No menu source registered")
    return MenuSourceResponse.from_domain(source)


@router.post("/parse-image", response_model=ParseImageResponse)
async def parse_image(
    restaurant_id: str = Form(..., min_length=1),
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    service: MenuIngestionService = Depends(get_ingestion_service),
) -> ParseImageResponse:
    """Extract items from a menu photo for review. Nothing is saved."""
    content_type = (file.content_type or "image/jpeg").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Content type '{content_type}' not allowed. Allowed types: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}",
        )

    image = ImageInput(data=await file.read(), mime_type=content_type)
    try:
        items = await run_in_threadpool(service.parse_image, user.id, restaurant_id, image)
    except (MenuPipelineError, ServiceError) as exc:
        raise to_http_error(exc)

    logger.info("Menu image parsed: restaurant=%s, items=%d", restaurant_id, len(items))
    return ParseImageResponse(items=[MenuItemPayload.from_candidate(item) for item in items], count=len(items))


@router.get("/items", response_model=list[MenuItemResponse])
async def list_items(
    restaurant_id: str = Query(..., min_length=1),
    user: CurrentUser = Depends(get_current_user),
    service: MenuIngestionService = Depends(get_ingestion_service),
) -> list[MenuItemResponse]:
    try:
        items = await run_in_threadpool(service.list_items, user.id, restaurant_id)
    except MenuPipelineError as exc:
        raise to_http_error(exc)
    return [MenuItemResponse.from_domain(item) for item in items]


@router.post("/items", response_model=MenuItemResponse)
async def save_item(
    payload: SaveMenuItemRequest,
    user: CurrentUser = Depends(get_current_user),
    service: MenuIngestionService = Depends(get_ingestion_service),
) -> MenuItemResponse:
    try:
        item = await run_in_threadpool(
            service.save_item,
            user.id,
            payload.restaurant_id,
            payload.name,
            payload.category,
            payload.description,
            payload.price,
        )
    except MenuPipelineError as exc:
        raise to_http_error(exc)
    return MenuItemResponse.from_domain(item)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    restaurant_id: str = Query(..., min_length=1),
    user: CurrentUser = Depends(get_current_user),
    service: MenuIngestionService = Depends(get_ingestion_service),
) -> Response:
    try:
        deleted = await run_in_threadpool(service.delete_item, user.id, restaurant_id, item_id)
    except MenuPipelineError as exc:
        raise to_http_error(exc)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
