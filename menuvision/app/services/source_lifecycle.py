# menuvision/app/services/source_lifecycle.py
"""
Menu source lifecycle: pending -> processing -> completed | failed.

One run is strictly sequential (acquire, extract, upsert, status write).
Runs for the same source are not serialized: two overlapping triggers
race on the status column and the last writer wins.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from menuvision.app.domain.errors import (
    CompletionPersistenceError,
    InvalidSourceError,
    MenuPipelineError,
    PersistenceError,
    SourceNotFoundError,
)
from menuvision.app.domain.models import (
    LifecycleOutcome,
    MenuSource,
    SourceStatus,
    SourceType,
)
from menuvision.app.infra.db.base import MenuSourceRepository
from menuvision.app.services.catalog_service import CatalogService
from menuvision.services.errors import ServiceError
from menuvision.services.extractor import MenuExtractor
from menuvision.services.fetcher import ContentAcquirer

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class SourceLifecycle:
    """
    Drives one MenuSource through ingestion and records the outcome.

    Every error raised by a stage ends the run in `failed`; nothing
    propagates to the caller, which already returned to its client.
    """

    def __init__(
        self,
        source_repository: MenuSourceRepository,
        fetcher: ContentAcquirer,
        extractor: MenuExtractor,
        catalog: CatalogService,
        clock: Callable[[], datetime] = _now_utc,
    ):
        self._sources = source_repository
        self._fetcher = fetcher
        self._extractor = extractor
        self._catalog = catalog
        self._clock = clock

    def run(self, source_id: str, restaurant_id: str) -> LifecycleOutcome:
        outcome = LifecycleOutcome(source_id=source_id, status=SourceStatus.PROCESSING)

        try:
            source = self._load_source(source_id, restaurant_id)
        except SourceNotFoundError as error:
            logger.error("Lifecycle aborted, source missing: id=%s, restaurant=%s", source_id, restaurant_id)
            outcome.status = SourceStatus.FAILED
            outcome.error = str(error)
            outcome.error_type = type(error).__name__
            return outcome
        except PersistenceError as error:
            return self._fail(outcome, error)

        try:
            self._start(source)
            menu_text = self._fetcher.acquire(self._require_url(source))
            items = self._extractor.extract_from_text(menu_text)
            outcome.items_extracted = len(items)

            outcome.items_written = self._catalog.upsert_items(restaurant_id, items)
            if outcome.items_written == 0:
                raise PersistenceError("upsert_items", f"none of {len(items)} items could be saved")

        except (MenuPipelineError, ServiceError) as error:
            return self._fail(outcome, error)
        except Exception as error:
            logger.exception("Unexpected lifecycle error: source=%s", source_id)
            return self._fail(outcome, error)

        return self._complete(outcome)

    def _load_source(self, source_id: str, restaurant_id: str) -> MenuSource:
        source = self._sources.get_source(source_id, restaurant_id)
        if source is None:
            raise SourceNotFoundError(restaurant_id, source_id)
        return source

    def _start(self, source: MenuSource) -> None:
        if source.is_terminal:
            logger.info("Re-entering processing from %s: source=%s", source.status.value, source.id)
        self._sources.update_status(source.id, SourceStatus.PROCESSING)
        logger.info(
            "Processing menu source: id=%s, restaurant=%s, type=%s",
            source.id, source.restaurant_id, source.source_type.value,
        )

    def _require_url(self, source: MenuSource) -> str:
        if source.source_type is not SourceType.URL or not source.source_url:
            raise InvalidSourceError(f"Source {source.id} has no URL to ingest (type={source.source_type.value})")
        return source.source_url

    def _complete(self, outcome: LifecycleOutcome) -> LifecycleOutcome:
        try:
            self._sources.update_status(outcome.source_id, SourceStatus.COMPLETED, scraped_at=self._clock())
        except PersistenceError as error:
            logger.error(
                "Extraction succeeded but completion write failed: source=%s, items=%d, error=%s",
                outcome.source_id, outcome.items_written, error.reason,
            )
            return self._fail(outcome, CompletionPersistenceError(outcome.source_id, error.reason))

        outcome.status = SourceStatus.COMPLETED
        logger.info(
            "Menu source completed: id=%s, extracted=%d, written=%d",
            outcome.source_id, outcome.items_extracted, outcome.items_written,
        )
        return outcome

    def _fail(self, outcome: LifecycleOutcome, error: Exception) -> LifecycleOutcome:
        outcome.status = SourceStatus.FAILED
        outcome.error = str(error)
        outcome.error_type = type(error).__name__

        logger.error(
            "Menu source failed: id=%s, error_type=%s, error=%s",
            outcome.source_id, outcome.error_type, outcome.error,
        )

        try:
            self._sources.update_status(outcome.source_id, SourceStatus.FAILED)
        except PersistenceError as write_error:
            logger.error("Could not record failed status: source=%s, error=%s", outcome.source_id, write_error)

        return outcome
