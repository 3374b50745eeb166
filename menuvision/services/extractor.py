from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from menuvision.app.domain.errors import ExtractionShapeError, NoItemsExtractedError
from menuvision.app.domain.models import CandidateItem, ImageInput
from menuvision.services.gemini_client import LanguageModelClient, parse_json_response
from menuvision.services.prompts import (
    MENU_IMAGE_PROMPT,
    MENU_TEXT_SYSTEM_PROMPT,
    MENU_TEXT_USER_PROMPT,
)

logger = logging.getLogger(__name__)

MAX_PROMPT_TEXT_CHARS = 8_000
TEXT_MAX_OUTPUT_TOKENS = 4_000
IMAGE_MAX_OUTPUT_TOKENS = 8_000


class ResponseShape(str, Enum):
    """The answer layouts accepted from the model, in sniffing order."""
    BARE_ARRAY = "bare_array"
    ITEMS = "items"
    MENU_ITEMS = "menuItems"
    FIRST_ARRAY_FIELD = "first_array_field"


@dataclass(frozen=True)
class ItemListResponse:
    shape: ResponseShape
    raw_items: list[Any]


def sniff_item_list(payload: Any) -> ItemListResponse:
    """
    Locate the item list inside a decoded model answer.

    Raises:
        ExtractionShapeError: If no known shape matches
    """
    if isinstance(payload, list):
        return ItemListResponse(ResponseShape.BARE_ARRAY, payload)

    if not isinstance(payload, dict):
        raise ExtractionShapeError(f"Unexpected response type: {type(payload).__name__}")

    if isinstance(payload.get("items"), list):
        return ItemListResponse(ResponseShape.ITEMS, payload["items"])

    if isinstance(payload.get("menuItems"), list):
        return ItemListResponse(ResponseShape.MENU_ITEMS, payload["menuItems"])

    for key, value in payload.items():
        if isinstance(value, list):
            logger.debug("Using first array field as item list: key=%s", key)
            return ItemListResponse(ResponseShape.FIRST_ARRAY_FIELD, value)

    raise ExtractionShapeError(f"No item list in response (keys: {', '.join(payload) or 'none'})")


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def normalize_items(raw_items: list[Any]) -> list[CandidateItem]:
    items: list[CandidateItem] = []
    for entry in raw_items:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            logger.debug("Skipping entry without name: %s", entry)
            continue
        items.append(
            CandidateItem(
                name=name.strip(),
                category=_clean_str(entry.get("category")),
                description=_clean_str(entry.get("description")),
                price=_clean_str(entry.get("price")),
            )
        )
    return items


def parse_extraction_response(text: str | None) -> list[CandidateItem]:
    """
    Decode, sniff and normalize a model answer.

    Raises:
        ExtractionShapeError: If the answer is not JSON or has no known shape
        NoItemsExtractedError: If no item survives filtering
    """
    try:
        payload = parse_json_response(text)
    except ValueError as error:
        raise ExtractionShapeError(f"Model response is not valid JSON: {error}") from error

    response = sniff_item_list(payload)
    items = normalize_items(response.raw_items)

    logger.info(
        "Extraction parsed: shape=%s, raw=%d, valid=%d",
        response.shape.value, len(response.raw_items), len(items),
    )

    if not items:
        raise NoItemsExtractedError()
    return items


class MenuExtractor:
    """Turns menu text or a menu photo into candidate items through a language model."""

    def __init__(self, llm: LanguageModelClient, model: str | None = None) -> None:
        self._llm = llm
        self.model = model

    def extract_from_text(self, menu_text: str) -> list[CandidateItem]:
        prompt = MENU_TEXT_USER_PROMPT.format(menu_text=menu_text[:MAX_PROMPT_TEXT_CHARS])
        answer = self._llm.generate_json(
            prompt,
            system_prompt=MENU_TEXT_SYSTEM_PROMPT,
            model=self.model,
            temperature=0.2,
            max_output_tokens=TEXT_MAX_OUTPUT_TOKENS,
        )
        return parse_extraction_response(answer)

    def extract_from_image(self, image: ImageInput) -> list[CandidateItem]:
        """
        Enumerate the items visible in a menu photo.
        The result is returned for review, never persisted here.
        """
        logger.info("Extracting menu from image: bytes=%d, mime=%s", len(image.data), image.mime_type)
        answer = self._llm.generate_json(
            MENU_IMAGE_PROMPT,
            images=[image],
            model=self.model,
            temperature=0.1,
            max_output_tokens=IMAGE_MAX_OUTPUT_TOKENS,
        )
        return parse_extraction_response(answer)
