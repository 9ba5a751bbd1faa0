"""
Image Synthesizer Client
Turns a prompt (plus an optional reference image) into an inline image data URL
by calling the Gemini image model's generateContent endpoint ("Nano Banana").
"""

import logging
from typing import Any, Optional

import httpx
from starlette.requests import Request

from brandsnap.config import Settings
from brandsnap.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# 1x1 gray PNG, stored whenever synthesis fails so an Asset never has an empty payload
PLACEHOLDER_IMAGE = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

REFERENCE_MIME_TYPE = "image/jpeg"


class SynthesisError(Exception):
    """The upstream call failed or returned no inline image."""


def split_reference_image(reference_image: str) -> tuple[Optional[str], str]:
    """
    Accept raw base64 or a full data URL.
    Returns (mime type from the data URL prefix or None, base64 payload).
    """
    if reference_image.startswith("data:"):
        header, sep, data = reference_image.partition(",")
        if sep:
            mime = header[len("data:"):].split(";", 1)[0] or None
            return mime, data
    return None, reference_image


def build_request_body(
    prompt: str,
    reference_image: Optional[str] = None,
    sniff_mime: bool = False,
) -> dict[str, Any]:
    parts: list[dict[str, Any]] = []

    if reference_image:
        sniffed, data = split_reference_image(reference_image)
        mime = sniffed if (sniff_mime and sniffed) else REFERENCE_MIME_TYPE
        parts.append({"inline_data": {"mime_type": mime, "data": data}})

    parts.append({"text": prompt})
    return {"contents": [{"parts": parts}]}


def extract_image(body: Any) -> str:
    """Return the first inlineData part of candidates[0] as a data URL."""
    if not isinstance(body, dict):
        raise SynthesisError("Response body is not a JSON object")

    candidates = body.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        raise SynthesisError("Response has no candidates")

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise SynthesisError("First candidate is not an object")

    content = candidate.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise SynthesisError("First candidate has no parts")

    for part in parts:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData")
        if isinstance(inline, dict):
            return f"data:{inline.get('mimeType')};base64,{inline.get('data')}"

    raise SynthesisError("No inline image in response")


class ImageSynthesizer:
    """
    Stateless wrapper around one shared httpx.AsyncClient.
    Safe to reuse across concurrent requests; no retries.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        url: str,
        timeout: float = 60.0,
        placeholder_on_failure: bool = True,
        sniff_reference_mime: bool = False,
    ):
        self.client = client
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.placeholder_on_failure = placeholder_on_failure
        self.sniff_reference_mime = sniff_reference_mime

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> "ImageSynthesizer":
        return cls(
            client=client,
            api_key=settings.nano_banana_api_key,
            url=settings.synthesizer_url,
            timeout=settings.synthesizer_timeout_seconds,
            placeholder_on_failure=settings.synthesizer_placeholder_on_failure,
            sniff_reference_mime=settings.synthesizer_sniff_reference_mime,
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    async def _call(self, prompt: str, reference_image: Optional[str]) -> str:
        body = build_request_body(prompt, reference_image, sniff_mime=self.sniff_reference_mime)
        logger.info(f"Synthesizer call: prompt={len(prompt)} chars, reference={'yes' if reference_image else 'no'}")

        try:
            response = await self.client.post(self.url, json=body, headers=self.headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise SynthesisError(f"Request failed: {e!r}") from e

        if not response.is_success:
            raise SynthesisError(f"Upstream returned HTTP {response.status_code}")
        if not response.content:
            raise SynthesisError("Upstream returned an empty body")

        try:
            payload = response.json()
        except ValueError as e:
            raise SynthesisError("Upstream body is not valid JSON") from e

        try:
            return extract_image(payload)
        except (AttributeError, TypeError, KeyError, IndexError) as e:
            raise SynthesisError(f"Unexpected response shape: {e}") from e

    async def synthesize(self, prompt: str, reference_image: Optional[str] = None) -> str:
        """
        Generate an image and return it as a data URL.
        On failure returns PLACEHOLDER_IMAGE, or raises UpstreamError when
        placeholder substitution is disabled.
        """
        try:
            image = await self._call(prompt, reference_image)
        except SynthesisError as e:
            logger.error(f"Image synthesis failed: {e}")
            if not self.placeholder_on_failure:
                raise UpstreamError("Image generation failed upstream") from e
            return PLACEHOLDER_IMAGE

        logger.info(f"Synthesizer returned {image[:image.find(';')]} ({len(image)} bytes)")
        return image


def get_synthesizer(request: Request) -> ImageSynthesizer:
    """FastAPI dependency: the process-wide synthesizer created in the app lifespan."""
    return request.app.state.synthesizer
