"""
Assistant Service Configuration
Loads settings from environment variables
"""

import os
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Application settings loaded from environment"""

    # Gemini generative backend
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_BASE_URL: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
    GEMINI_TEMPERATURE: float = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))
    GEMINI_MAX_OUTPUT_TOKENS: int = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "800"))
    GEMINI_TOP_P: float = float(os.getenv("GEMINI_TOP_P", "0.9"))
    GEMINI_TOP_K: int = int(os.getenv("GEMINI_TOP_K", "40"))
    GEMINI_TIMEOUT: float = float(os.getenv("GEMINI_TIMEOUT", "30"))

    # Homestay inventory / notifications backend
    HOMESTAY_API_BASE_URL: str = os.getenv("HOMESTAY_API_BASE_URL", "http://localhost:5000/api")
    HOMESTAY_API_TOKEN: str = os.getenv("HOMESTAY_API_TOKEN", "")
    HOMESTAY_API_TIMEOUT: float = float(os.getenv("HOMESTAY_API_TIMEOUT", "10"))

    # Typing reveal pacing
    TYPING_BASE_DELAY_MS: int = int(os.getenv("TYPING_BASE_DELAY_MS", "12"))
    TYPING_INITIAL_DELAY_MS: int = int(os.getenv("TYPING_INITIAL_DELAY_MS", "500"))

    # Assistant persona
    BOT_NAME: str = os.getenv("BOT_NAME", "Pulau Pal")
    SESSION_TIMEOUT_MINUTES: int = int(os.getenv("SESSION_TIMEOUT_MINUTES", "60"))
    DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en")

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def typing_base_delay(self) -> float:
        return self.TYPING_BASE_DELAY_MS / 1000.0

    @property
    def typing_initial_delay(self) -> float:
        return self.TYPING_INITIAL_DELAY_MS / 1000.0

    @property
    def generation_config(self) -> dict:
        """Generation parameters for the primary Gemini call"""
        return {
            "temperature": self.GEMINI_TEMPERATURE,
            "maxOutputTokens": self.GEMINI_MAX_OUTPUT_TOKENS,
            "topP": self.GEMINI_TOP_P,
            "topK": self.GEMINI_TOP_K,
        }


# Global settings instance
settings = Settings()
