import requests
import logging
from typing import Any, Dict, List, Optional

from ..core.config import settings
from ..core.error_handling import (
    ConfigurationError, MalformedResponseError, TransportError, error_for_status
)

logger = logging.getLogger(__name__)

SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


def extract_candidate_text(data: Any) -> str:
    """Pull candidates[0].content.parts[0].text out of a generateContent payload"""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise MalformedResponseError("Invalid response format from Gemini API")
    if not isinstance(text, str):
        raise MalformedResponseError("Candidate text is not a string")
    return text


class GeminiClient:
    def __init__(self, api_key: str = None, model: str = None, base_url: str = None, timeout: float = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEMINI_TIMEOUT

        if not self.api_key:
            logger.warning("GEMINI_API_KEY not found in environment variables. Generative answers are disabled.")

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key != "your_gemini_api_key_here")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def generate_content(self, prompt: str, generation_config: Optional[Dict[str, Any]] = None,
                         safety_settings: Optional[List[Dict[str, str]]] = None) -> str:
        """
        Send a single-turn prompt to Gemini and return the first candidate text.

        Raises ConfigurationError without touching the network when no key is set,
        RequestFormatError / AuthorizationError / TransportError for failed calls and
        MalformedResponseError when the payload has no candidate text.
        """
        if not self.is_configured():
            raise ConfigurationError("Gemini API key is not configured")

        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if generation_config:
            payload["generationConfig"] = generation_config
        if safety_settings:
            payload["safetySettings"] = safety_settings

        try:
            response = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            raise TransportError("Gemini API request timeout")
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Error calling Gemini API: {e}")

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            raise error_for_status(response.status_code, body)

        try:
            data = response.json()
        except ValueError:
            raise MalformedResponseError("Gemini API returned a non-JSON body")

        return extract_candidate_text(data)
