"""
Plant analysis via the Gemini multimodal API.

The uploaded image is fetched back from storage, base64-encoded and sent
with a fixed prompt to `generateContent`. The model's text is returned as-is.
"""
import base64
import logging
from typing import Tuple
import httpx

from app.core.exceptions import AnalysisError

logger = logging.getLogger(__name__)

PLANT_ANALYSIS_PROMPT = (
    "Analyze this plant image and provide detailed analysis of its species, health, "
    "and care recommendations, its characteristics, care instructions, and any "
    "interesting facts. Please provide the response in plain text without using "
    "any markdown formatting."
)


async def fetch_image(client: httpx.AsyncClient, url: str) -> Tuple[bytes, str]:
    """
    Download an image. Returns (bytes, content type).
    Raises httpx.HTTPError on network failure or a non-2xx status.
    """
    response = await client.get(url)
    response.raise_for_status()
    content_type = response.headers.get("content-type", "").split(";")[0].strip()
    return response.content, content_type


class GeminiAnalyzer:
    """Client for Gemini plant analysis. Single attempt, no caching."""

    def __init__(self, client: httpx.AsyncClient, api_key: str, api_url: str, model: str):
        self.client = client
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/models/{self.model}:generateContent"

    async def analyze_image_url(self, image_url: str, mime_type: str) -> str:
        """Fetch an uploaded image and return the model's plant analysis text."""
        if not self.api_key:
            raise AnalysisError("Gemini API key not configured. Set GEMINI_API_KEY in .env file")

        try:
            image_bytes, fetched_type = await fetch_image(self.client, image_url)
        except httpx.HTTPStatusError as e:
            raise AnalysisError(
                f"Failed to fetch image from storage: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise AnalysisError(f"Failed to fetch image from storage: {e}") from e

        if fetched_type.startswith("image/"):
            mime_type = fetched_type

        image_base64 = base64.b64encode(image_bytes).decode('utf-8')
        payload = {
            "contents": [
                {
                    "parts": [
                        {"text": PLANT_ANALYSIS_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": image_base64
                            }
                        }
                    ]
                }
            ]
        }

        try:
            response = await self.client.post(
                self.endpoint,
                headers={
                    "x-goog-api-key": self.api_key,
                    "Content-Type": "application/json"
                },
                json=payload
            )
        except httpx.TimeoutException as e:
            raise AnalysisError("Gemini API request timed out") from e
        except httpx.HTTPError as e:
            raise AnalysisError(f"Gemini API request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Gemini API error {response.status_code}: {response.text[:500]}")
            raise AnalysisError(f"Gemini API error {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise AnalysisError("Gemini API returned invalid JSON") from e

        text = _extract_text(result)
        if not text:
            raise AnalysisError("Gemini API returned no analysis text")

        logger.info(f"Plant analysis completed for {image_url}")
        return text


def _extract_text(result: dict) -> str:
    """Join the text parts of the first candidate."""
    candidates = result.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
