"""Resolve a story's source content into plain text."""

import html
import logging
import re
from typing import TYPE_CHECKING

import httpx

from core.exceptions import UnsupportedSourceError
from core.models import SourceType

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style|noscript)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def html_to_text(markup: str) -> str:
    """Reduce an HTML document to its readable text."""
    text = _SCRIPT_STYLE_RE.sub(" ", markup)
    text = _TAG_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", html.unescape(text)).strip()


class SourceLoader:
    """Turns text, URL or audio sources into narrative input text.

    Audio sources are expected to arrive already transcribed; an audio source
    that is still a URL is rejected.
    """

    def __init__(self, settings: "Settings", *, transport: httpx.AsyncBaseTransport | None = None):
        self._timeout = settings.asset_download_timeout
        self._max_length = settings.max_source_length
        self._transport = transport

    async def load(self, content: str, source_type: SourceType) -> str:
        """Return the text to write a narrative from.

        Raises:
            UnsupportedSourceError: If the source cannot be turned into text.
        """
        content = content.strip()
        if source_type == SourceType.URL:
            text = await self._fetch_url(content)
        elif source_type == SourceType.AUDIO and content.startswith(("http://", "https://")):
            raise UnsupportedSourceError("Audio sources must be transcribed before submission")
        else:
            text = content

        if not text:
            raise UnsupportedSourceError("Source content is empty")
        return text[: self._max_length]

    async def _fetch_url(self, url: str) -> str:
        logger.info("Fetching source URL: %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise UnsupportedSourceError(f"Failed to fetch source URL {url}: {e}") from e

        content_type = response.headers.get("content-type", "")
        if "html" in content_type:
            return html_to_text(response.text)
        return response.text.strip()
