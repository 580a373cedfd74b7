# hairscan/gateway.py
import asyncio
import base64
import binascii
import json
import logging
import re
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors, types
from pydantic import ValidationError

from .config import Settings
from .errors import InvalidInput, UpstreamError
from .models import AnalysisResult, HairAssessment
from .tips import TipProvider

logger = logging.getLogger(__name__)

ACCEPTED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
})

SYSTEM_INSTRUCTION = (
    "Act as an AI Dermatologist. Analyze the scalp image for hair loss. "
    "Respond ONLY in VALID JSON using the exact schema."
)
USER_PROMPT = "Analyze this scalp image for hair loss."

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "grade": types.Schema(type=types.Type.STRING),
        "percentageLoss": types.Schema(type=types.Type.NUMBER),
        "analysisSummary": types.Schema(type=types.Type.STRING),
        "tips": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
        "doctorConsultationAdvice": types.Schema(type=types.Type.STRING),
    },
    required=[
        "grade",
        "percentageLoss",
        "analysisSummary",
        "tips",
        "doctorConsultationAdvice",
    ],
)

DEGRADED_SUMMARY = "Cannot analyze the image."
DEGRADED_TIPS = ("Try clearer lighting", "Upload a non-blurry image")
DEGRADED_ADVICE = "Retry with another picture."

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")
_DATA_URL_RE = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences such as ```json ... ``` around a reply."""
    return _FENCE_RE.sub("", text).strip()


def parse_assessment(raw: Optional[str]) -> HairAssessment:
    """
    Parse the provider's reply into a HairAssessment.

    The reply is expected to be bare JSON because the request is schema
    constrained; fenced JSON is accepted only when the bare parse fails.
    """
    if raw is None or not raw.strip():
        raise UpstreamError("Empty response from analysis provider")

    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError:
        try:
            data = json.loads(strip_code_fences(raw))
        except json.JSONDecodeError as e:
            raise UpstreamError(f"Analysis provider returned invalid JSON: {e}") from e

    try:
        return HairAssessment.model_validate(data)
    except ValidationError as e:
        raise UpstreamError(f"Analysis provider reply does not match the schema: {e}") from e


def decode_image(base64_image: str) -> bytes:
    payload = _DATA_URL_RE.sub("", base64_image.strip())
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput("Image data is not valid base64") from e


class AnalysisGateway:
    """Wraps the Gemini call that grades hair loss in a scalp photo."""

    def __init__(self, settings: Settings, tips: TipProvider, client: Optional[genai.Client] = None):
        self._settings = settings
        self._tips = tips
        self._genai_client = client

    def _client(self) -> genai.Client:
        if self._genai_client is None:
            if not self._settings.gemini_api_key:
                raise UpstreamError("GEMINI_API_KEY is not configured")
            self._genai_client = genai.Client(api_key=self._settings.gemini_api_key)
        return self._genai_client

    def _validate(self, base64_image: Optional[str], mime_type: Optional[str]) -> bytes:
        if not base64_image or not base64_image.strip():
            raise InvalidInput("Missing image data")
        if not mime_type or mime_type.strip().lower() not in ACCEPTED_MIME_TYPES:
            raise InvalidInput(f"Unsupported image type: {mime_type!r}")

        image_bytes = decode_image(base64_image)
        if not image_bytes:
            raise InvalidInput("Missing image data")
        if len(image_bytes) > self._settings.max_image_bytes:
            raise InvalidInput(
                f"Image is too large ({len(image_bytes)} bytes, limit {self._settings.max_image_bytes})"
            )
        return image_bytes

    async def _generate(self, image_bytes: bytes, mime_type: str):
        client = self._client()
        timeout = self._settings.analysis_timeout_seconds
        attempts = 1 + self._settings.analysis_max_retries
        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
        )
        image_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)

        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.wait_for(
                    client.aio.models.generate_content(
                        model=self._settings.gemini_model,
                        contents=[USER_PROMPT, image_part],
                        config=config,
                    ),
                    timeout=timeout,
                )
            except asyncio.TimeoutError as e:
                raise UpstreamError(f"Analysis provider timed out after {timeout}s", timeout=True) from e
            except (errors.ServerError, httpx.TransportError) as e:
                if attempt < attempts:
                    logger.warning(f"Transient Gemini failure ({e}); retrying (attempt {attempt + 1}/{attempts})")
                    await asyncio.sleep(self._settings.analysis_retry_delay_seconds)
                    continue
                raise UpstreamError(f"Analysis provider unavailable: {e}") from e
            except errors.APIError as e:
                raise UpstreamError(f"Analysis provider rejected the request: {e}") from e
            except Exception as e:
                raise UpstreamError(f"Analysis provider call failed: {e}") from e

    async def analyze(self, base64_image: Optional[str], mime_type: Optional[str]) -> AnalysisResult:
        """
        Grade the hair loss visible in a base64-encoded scalp image.

        Raises InvalidInput for a missing, undecodable or unsupported image and
        UpstreamError when the provider fails or replies with unusable content.
        """
        image_bytes = self._validate(base64_image, mime_type)
        response = await self._generate(image_bytes, mime_type.strip().lower())

        assessment = parse_assessment(getattr(response, "text", None))
        return AnalysisResult(
            **assessment.model_dump(),
            additionalHairCareTips=self._tips.sample(3),
        )

    async def analyze_or_degrade(self, base64_image: Optional[str], mime_type: Optional[str]) -> AnalysisResult:
        try:
            return await self.analyze(base64_image, mime_type)
        except UpstreamError as e:
            logger.warning(f"Gemini analysis failed, returning degraded result: {e}")
            return self.degraded_result()

    def degraded_result(self) -> AnalysisResult:
        return AnalysisResult(
            grade="Error",
            percentageLoss=0,
            analysisSummary=DEGRADED_SUMMARY,
            tips=list(DEGRADED_TIPS),
            doctorConsultationAdvice=DEGRADED_ADVICE,
            additionalHairCareTips=self._tips.sample(3),
        )
