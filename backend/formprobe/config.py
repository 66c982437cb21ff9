"""
Configuration management for the form field detection service.
Loads AI service credentials and runtime settings from environment variables.
"""
import os
import logging
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

logger = logging.getLogger(__name__)


class Config:
    """Configuration class for AI service credentials and settings."""

    # Inference / refinement service (OpenAI-compatible chat completions API)
    INFERENCE_API_KEY: Optional[str] = os.getenv('INFERENCE_API_KEY') or os.getenv('OPENAI_API_KEY')
    INFERENCE_API_BASE: str = os.getenv('INFERENCE_API_BASE', 'https://api.openai.com/v1')
    INFERENCE_MODEL: str = os.getenv('INFERENCE_MODEL', 'gpt-4o-mini')

    # Timeouts (seconds)
    INFERENCE_TIMEOUT_SECONDS: float = float(os.getenv('INFERENCE_TIMEOUT_SECONDS', '60'))
    REFINEMENT_TIMEOUT_SECONDS: float = float(os.getenv('REFINEMENT_TIMEOUT_SECONDS', '30'))
    FETCH_TIMEOUT_SECONDS: float = float(os.getenv('FETCH_TIMEOUT_SECONDS', '20'))

    # Rate Limiting
    MAX_TOTAL_CALLS: int = int(os.getenv('MAX_TOTAL_CALLS', '500'))
    ENABLE_RATE_LIMITING: bool = os.getenv('ENABLE_RATE_LIMITING', 'true').lower() == 'true'

    # API Settings
    API_HOST: str = os.getenv('API_HOST', '0.0.0.0')
    API_PORT: int = int(os.getenv('API_PORT', '8000'))
    CORS_ORIGINS: list = os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')

    @classmethod
    def validate(cls) -> bool:
        """
        Validate that configuration values are usable.

        A missing inference key is not an error: the service then runs
        with heuristic detection only.
        """
        if not cls.INFERENCE_API_KEY:
            logger.warning(
                "INFERENCE_API_KEY (or OPENAI_API_KEY) is not set. "
                "HTML analysis will use heuristic detection only."
            )

        for name in ('INFERENCE_TIMEOUT_SECONDS', 'REFINEMENT_TIMEOUT_SECONDS', 'FETCH_TIMEOUT_SECONDS'):
            if getattr(cls, name) <= 0:
                raise ValueError(f"{name} must be a positive number of seconds.")

        if cls.MAX_TOTAL_CALLS <= 0:
            raise ValueError("MAX_TOTAL_CALLS must be a positive integer.")

        if not cls.INFERENCE_API_BASE.startswith(('http://', 'https://')):
            raise ValueError("INFERENCE_API_BASE must be an http(s) URL.")
        return True

    @classmethod
    def has_inference_credentials(cls) -> bool:
        """Check whether the external inference service can be called."""
        return bool(cls.INFERENCE_API_KEY)
