import json
import logging
from typing import Optional

import httpx
from google import genai
from google.genai import errors, types

from . import config
from .schemas import AnalysisResult, FlaggedResult, ImagePayload, TextResult

logger = logging.getLogger(__name__)

PROMPT = "Is there a threat in this image? If so, what is the threat and describe it."

ANALYSIS_FAILED = "Could not analyse image"
UPSTREAM_TIMEOUT = "Could not reach Gemini (timeout)"

# Lower safety thresholds so the model is allowed to describe weapons
SAFETY_SETTINGS = [
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        threshold=types.HarmBlockThreshold.BLOCK_NONE,
    ),
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        threshold=types.HarmBlockThreshold.BLOCK_NONE,
    ),
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        threshold=types.HarmBlockThreshold.BLOCK_NONE,
    ),
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        threshold=types.HarmBlockThreshold.BLOCK_NONE,
    ),
]


def to_image_part(payload: ImagePayload) -> dict:
    """Converts a validated data URL into the inline part expected by Gemini."""
    mime, data = payload.decode()
    return {"inline_data": {"mime_type": mime, "data": data}}


def parse_model_output(text: str) -> AnalysisResult:
    """Wrap the model's reply, honouring explicit flags if it answered in JSON."""
    # Clean up potential markdown formatting (```json ... ```) before parsing
    clean_text = text.strip().removeprefix("```json").removesuffix("```").strip()
    if clean_text.startswith("{"):
        try:
            data = json.loads(clean_text)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            result = FlaggedResult.from_mapping(data, raw_text=text)
            if result.flags or result.description is not None:
                return result
    return TextResult(text=text)


def first_candidate_text(response) -> Optional[str]:
    # Gemini returns an array of 'candidates'
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return None
    return getattr(parts[0], "text", None) or None


class GeminiRelay:
    """
    Forwards one image to Gemini and returns its description.

    A single genai client is kept for the life of the process so its
    connection pool is reused across requests. Every failure degrades to a
    fallback description; nothing is raised to the caller.
    """

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        model: str = config.MODEL_NAME,
        timeout_ms: int = config.GEMINI_TIMEOUT_MS,
        api_key: str = config.GOOGLE_API_KEY,
        base_url: Optional[str] = config.GEMINI_BASE_URL,
    ):
        self.model = model
        self.timeout_ms = timeout_ms
        if client is None:
            client = self._build_client(api_key, base_url)
        self.client = client

    def _build_client(self, api_key: str, base_url: Optional[str]) -> Optional[genai.Client]:
        try:
            return genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=self.timeout_ms, base_url=base_url),
            )
        except ValueError as e:
            # missing key: every request gets the fallback description instead
            logger.error(f"Could not create Gemini client: {e}")
            return None

    def analyse(self, payload: ImagePayload) -> AnalysisResult:
        if self.client is None:
            logger.error("Gemini client is not configured, skipping analysis")
            return TextResult(text=ANALYSIS_FAILED)

        contents = [{"role": "user", "parts": [{"text": PROMPT}, to_image_part(payload)]}]

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(safety_settings=SAFETY_SETTINGS),
            )
        except httpx.TimeoutException:
            logger.error(f"Gemini request aborted after {self.timeout_ms}ms")
            return TextResult(text=UPSTREAM_TIMEOUT)
        except errors.APIError as e:
            logger.error(f"Gemini error: {e.code} {e.message}")
            return TextResult(text=ANALYSIS_FAILED)
        except httpx.HTTPError as e:
            logger.error(f"Failed to contact Gemini: {e}")
            return TextResult(text=ANALYSIS_FAILED)

        description = first_candidate_text(response)
        if description is None:
            logger.error("Empty response from Gemini. Possible safety block.")
            return TextResult(text=ANALYSIS_FAILED)

        logger.info(description)
        return parse_model_output(description)
