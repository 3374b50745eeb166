# menuvision/app/services/photo_classifier.py
"""
Photo-to-menu-item classifier.

Two model stages: a cheap food gate, then dish identification against
the restaurant's catalog. The model answer is fuzzy matched back to a
catalog entry before anything is written.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from menuvision.app.domain.errors import MenuPipelineError, PersistenceError
from menuvision.app.domain.models import (
    ClassificationReason,
    ClassificationResult,
    ImageInput,
    MenuItem,
)
from menuvision.app.infra.db.base import MenuItemRepository, PhotoRepository
from menuvision.services.errors import ServiceError
from menuvision.services.fetcher import ContentAcquirer
from menuvision.services.gemini_client import LanguageModelClient, parse_json_response
from menuvision.services.matching import find_matching_item
from menuvision.services.prompts import DISH_IDENTIFICATION_PROMPT, FOOD_GATE_PROMPT

logger = logging.getLogger(__name__)

GATE_MAX_OUTPUT_TOKENS = 50
IDENTIFY_MAX_OUTPUT_TOKENS = 200


def format_catalog(items: Sequence[MenuItem]) -> str:
    """One line per item: `- name (category): description`."""
    lines = []
    for item in items:
        line = f"- {item.name}"
        if item.category:
            line += f" ({item.category})"
        if item.description:
            line += f": {item.description}"
        lines.append(line)
    return "\n".join(lines)


def _answer_field(text: Optional[str], field: str):
    payload = parse_json_response(text)
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload.get(field)


class PhotoClassifier:
    """
    Links an uploaded photo to the menu item it shows.

    `classify` never raises: every failure is reported in the result.
    """

    def __init__(
        self,
        items_repository: MenuItemRepository,
        photos_repository: PhotoRepository,
        fetcher: ContentAcquirer,
        llm: LanguageModelClient,
        model: Optional[str] = None,
        gate_model: Optional[str] = None,
    ):
        self._items = items_repository
        self._photos = photos_repository
        self._fetcher = fetcher
        self._llm = llm
        self.model = model
        self.gate_model = gate_model or model

    def classify(self, photo_id: str, restaurant_id: str, image_url: str) -> ClassificationResult:
        try:
            owned = self._photos.belongs_to(photo_id, restaurant_id)
        except PersistenceError as error:
            logger.error("Photo ownership lookup failed: photo=%s, restaurant=%s, error=%s", photo_id, restaurant_id, error)
            return ClassificationResult(photo_id=photo_id, reason=ClassificationReason.NO_MATCH, error=str(error))

        if not owned:
            logger.warning("Photo not submitted to restaurant: photo=%s, restaurant=%s", photo_id, restaurant_id)
            return ClassificationResult(
                photo_id=photo_id,
                reason=ClassificationReason.NO_MATCH,
                error=f"Photo {photo_id} does not belong to restaurant {restaurant_id}",
            )

        try:
            catalog = self._items.list_items(restaurant_id)
        except PersistenceError as error:
            logger.warning("Catalog read failed, treating as empty: restaurant=%s, error=%s", restaurant_id, error)
            catalog = []

        if not catalog:
            logger.info("Skipping classification, no menu items: photo=%s, restaurant=%s", photo_id, restaurant_id)
            return ClassificationResult(photo_id=photo_id, reason=ClassificationReason.NO_MENU_ITEMS)

        try:
            image = self._fetcher.fetch_image(image_url)
        except MenuPipelineError as error:
            logger.error("Photo download failed: photo=%s, error=%s", photo_id, error)
            return ClassificationResult(photo_id=photo_id, reason=ClassificationReason.NO_MATCH, error=str(error))

        if not self._is_food(photo_id, image):
            logger.info("Photo is not food: photo=%s", photo_id)
            return ClassificationResult(photo_id=photo_id, reason=ClassificationReason.NOT_FOOD)

        try:
            answer = self._identify_dish(image, catalog)
        except ServiceError as error:
            logger.error("Dish identification failed: photo=%s, error=%s", photo_id, error)
            return ClassificationResult(photo_id=photo_id, reason=ClassificationReason.NO_MATCH, error=str(error))

        match = find_matching_item(answer, catalog)
        if match is None:
            logger.info("No catalog match: photo=%s, answer=%r", photo_id, answer)
            return ClassificationResult(photo_id=photo_id, reason=ClassificationReason.NO_MATCH)

        try:
            self._photos.attach_menu_item(photo_id, restaurant_id, match.id)
        except PersistenceError as error:
            logger.error("Photo link write failed: photo=%s, item=%s, error=%s", photo_id, match.id, error)
            return ClassificationResult(photo_id=photo_id, reason=ClassificationReason.NO_MATCH, error=str(error))

        logger.info("Photo classified: photo=%s, item=%s, name=%s", photo_id, match.id, match.name)
        return ClassificationResult(
            photo_id=photo_id,
            reason=ClassificationReason.MATCHED,
            menu_item_id=match.id,
            menu_item_name=match.name,
        )

    def _is_food(self, photo_id: str, image: ImageInput) -> bool:
        """
        Stage 1 food gate. Fails open: an unusable answer lets the
        photo through to identification.
        """
        try:
            answer = self._llm.generate_json(
                FOOD_GATE_PROMPT,
                images=[image],
                model=self.gate_model,
                temperature=0.0,
                max_output_tokens=GATE_MAX_OUTPUT_TOKENS,
            )
        except ServiceError as error:
            logger.warning("Food gate unavailable, continuing: photo=%s, error=%s", photo_id, error)
            return True

        if not answer or not answer.strip():
            return False

        try:
            return _answer_field(answer, "isFood") is True
        except ValueError as error:
            logger.warning("Unreadable food gate answer, continuing: photo=%s, error=%s", photo_id, error)
            return True

    def _identify_dish(self, image: ImageInput, catalog: Sequence[MenuItem]) -> Optional[str]:
        answer = self._llm.generate_json(
            DISH_IDENTIFICATION_PROMPT.format(menu_items=format_catalog(catalog)),
            images=[image],
            model=self.model,
            temperature=0.0,
            max_output_tokens=IDENTIFY_MAX_OUTPUT_TOKENS,
        )
        try:
            name = _answer_field(answer, "menuItemName")
        except ValueError as error:
            logger.warning("Unreadable identification answer: error=%s", error)
            return None
        return name if isinstance(name, str) else None
