from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Sequence

import httpx
from google import genai
from google.genai import types
from google.genai.errors import APIError

from menuvision.app.domain.models import ImageInput
from menuvision.services.errors import (
    LanguageModelConfigurationError,
    LanguageModelError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)

JSON_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_json_fences(text: str) -> str:
    return JSON_FENCE_PATTERN.sub("", text.strip()).strip()


def parse_json_response(text: str | None) -> Any:
    """
    Decode a model answer as JSON.

    Raises:
        ValueError: If the text is empty or not valid JSON
    """
    if not text or not text.strip():
        raise ValueError("Model response did not include text content.")
    return json.loads(strip_json_fences(text))


def _is_rate_limited_error(exc: Exception) -> bool:
    status_code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    if status_code == 429:
        return True
    return "RESOURCE_EXHAUSTED" in str(exc)


class LanguageModelClient(ABC):
    """
    Structured-output language model.

    Implementations return the raw text of the answer; callers decode
    and validate it because the producer is not trusted.
    """

    @abstractmethod
    def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        images: Sequence[ImageInput] = (),
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> str:
        """
        Ask for a JSON answer.

        Raises:
            RateLimitedError: If the provider throttled the request
            LanguageModelError: For any other provider failure
        """
        pass


class GeminiClient(LanguageModelClient):
    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash") -> None:
        if not api_key:
            raise LanguageModelConfigurationError("Missing Gemini API key.")
        self.model_name = model_name
        self._client = genai.Client(api_key=api_key)

    def _build_contents(self, prompt: str, images: Sequence[ImageInput]) -> list[types.Part | str]:
        contents: list[types.Part | str] = [
            types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
            for image in images
        ]
        contents.append(prompt)
        return contents

    def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        images: Sequence[ImageInput] = (),
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> str:
        model_name = model or self.model_name
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            response_mime_type="application/json",
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

        try:
            response = self._client.models.generate_content(
                model=model_name,
                contents=self._build_contents(prompt, images),
                config=config,
            )
        except APIError as err:
            if _is_rate_limited_error(err):
                raise RateLimitedError("Gemini API rate limit reached.") from err
            logger.error("Gemini request failed: model=%s, error=%s", model_name, err)
            raise LanguageModelError(f"Gemini request failed: {err}") from err
        except httpx.HTTPError as err:
            logger.error("Gemini transport error: model=%s, error=%s", model_name, err)
            raise LanguageModelError(f"Gemini transport error: {err}") from err

        text = response.text or ""
        logger.debug("Gemini answered: model=%s, chars=%d", model_name, len(text))
        return text
