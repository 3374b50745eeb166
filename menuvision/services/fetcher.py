from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

import httpx
from bs4 import BeautifulSoup

from menuvision.app.domain.errors import FetchError, InsufficientContentError
from menuvision.app.domain.models import ImageInput

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 12.0
MIN_CANDIDATE_CHARS = 200
MIN_CONTENT_CHARS = 50
MAX_CONTENT_CHARS = 10_000
PREFERRED_CUT_MIN_CHARS = 8_000

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

IMAGE_HEADERS = {
    "User-Agent": BROWSER_HEADERS["User-Agent"],
    "Accept": "image/*",
}

NON_CONTENT_TAGS = ("script", "style", "nav", "header", "footer")

# Priority order: explicit menu regions first, then generic content containers.
MENU_SELECTORS = (
    '[class*="menu" i]',
    '[id*="menu" i]',
    "main",
    "article",
    ".content",
    "#content",
)

PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
BOILERPLATE_PATTERN = re.compile(
    r"\b(Contact us|Follow us|Hours|Address|Phone|Email|Instagram|Facebook|Twitter|Copyright|All rights reserved)\b",
    re.IGNORECASE,
)
WHITESPACE_PATTERN = re.compile(r"\s+")


def _element_text(element) -> str:
    return WHITESPACE_PATTERN.sub(" ", element.get_text(" ")).strip()


def _remove_non_content(soup: BeautifulSoup) -> None:
    for tag in soup(list(NON_CONTENT_TAGS)):
        tag.decompose()


def _find_menu_text(soup: BeautifulSoup) -> str:
    for selector in MENU_SELECTORS:
        container = soup.select_one(selector)
        if container is None:
            continue

        text = _element_text(container)
        if len(text) > MIN_CANDIDATE_CHARS:
            logger.debug("Menu content found: selector=%s, chars=%d", selector, len(text))
            return text

    body = soup.body or soup
    logger.debug("No menu container cleared the threshold, using body text")
    return _element_text(body)


def clean_menu_text(text: str) -> str:
    cleaned = PHONE_PATTERN.sub("", text)
    cleaned = EMAIL_PATTERN.sub("", cleaned)
    cleaned = BOILERPLATE_PATTERN.sub("", cleaned)
    return WHITESPACE_PATTERN.sub(" ", cleaned).strip()


def truncate_menu_text(text: str, limit: int = MAX_CONTENT_CHARS) -> str:
    if len(text) <= limit:
        return text

    truncated = text[:limit]
    cut_point = max(truncated.rfind("."), truncated.rfind("\n"))
    if cut_point > PREFERRED_CUT_MIN_CHARS:
        return truncated[: cut_point + 1]
    return truncated


def html_to_menu_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    _remove_non_content(soup)
    return truncate_menu_text(clean_menu_text(_find_menu_text(soup)))


class ContentAcquirer(ABC):
    """Source of menu text and photo bytes for the pipeline."""

    @abstractmethod
    def acquire(self, url: str) -> str:
        pass

    @abstractmethod
    def fetch_image(self, url: str) -> ImageInput:
        pass


class ContentFetcher(ContentAcquirer):
    """
    Fetches a menu page and reduces it to plain text likely to hold menu listings.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers=BROWSER_HEADERS,
        )

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, headers: dict[str, str]) -> httpx.Response:
        try:
            response = self._client.get(url, headers=headers)
        except httpx.TimeoutException as error:
            raise FetchError(url, f"timed out after {self.timeout_seconds}s") from error
        except httpx.HTTPError as error:
            raise FetchError(url, f"network error: {error}") from error

        if not response.is_success:
            raise FetchError(
                url,
                f"HTTP {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response

    def acquire(self, url: str) -> str:
        """
        Fetch `url` and return bounded menu text.

        Raises:
            FetchError: On network failure or a non-2xx response
            InsufficientContentError: If fewer than 50 chars survive cleanup
        """
        logger.info("Fetching menu page: url=%s", url)
        response = self._get(url, {**BROWSER_HEADERS, "Referer": url})

        text = html_to_menu_text(response.text)
        if len(text) < MIN_CONTENT_CHARS:
            raise InsufficientContentError(len(text), MIN_CONTENT_CHARS)

        logger.info("Menu text acquired: url=%s, html_chars=%d, text_chars=%d", url, len(response.text), len(text))
        return text

    def fetch_image(self, url: str) -> ImageInput:
        """
        Download an image (e.g. from a signed storage URL).

        Raises:
            FetchError: On network failure or a non-2xx response
        """
        response = self._get(url, IMAGE_HEADERS)
        content_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        if not content_type.startswith("image/"):
            content_type = "image/jpeg"
        return ImageInput(data=response.content, mime_type=content_type)
