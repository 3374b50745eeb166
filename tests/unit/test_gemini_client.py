from __future__ import annotations

import pytest

from menuvision.services.errors import LanguageModelConfigurationError
from menuvision.services.gemini_client import (
    GeminiClient,
    _is_rate_limited_error,
    parse_json_response,
    strip_json_fences,
)


class _ErrorWithCode(Exception):
    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message)
        self.code = code


class TestStripJsonFences:
    def test_fenced_answer(self) -> None:
        assert strip_json_fences('```json\n{"isFood": true}\n```') == '{"isFood": true}'

    def test_plain_answer_untouched(self) -> None:
        assert strip_json_fences('  {"isFood": false} ') == '{"isFood": false}'


class TestParseJsonResponse:
    def test_decodes_object(self) -> None:
        assert parse_json_response('{"menuItemName": null}') == {"menuItemName": None}

    @pytest.mark.parametrize("text", [None, "", "   ", "{broken"])
    def test_rejects_unusable_text(self, text) -> None:
        with pytest.raises(ValueError):
            parse_json_response(text)


class TestRateLimitDetection:
    def test_status_code(self) -> None:
        assert _is_rate_limited_error(_ErrorWithCode(429))

    def test_resource_exhausted_message(self) -> None:
        assert _is_rate_limited_error(_ErrorWithCode(400, "RESOURCE_EXHAUSTED: quota"))

    def test_other_errors(self) -> None:
        assert not _is_rate_limited_error(_ErrorWithCode(500, "INTERNAL"))


class TestGeminiClient:
    def test_missing_key(self) -> None:
        with pytest.raises(LanguageModelConfigurationError):
            GeminiClient("")
