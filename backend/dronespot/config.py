"""
DroneSpot Backend: Application Configuration
==============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; checked again during app startup.

Upstream services configured here:
    - OpenAI chat completions (image understanding, default provider)
    - Google Gemini (image understanding, alternative provider)
    - Google Maps Geocoding (address -> coordinates)
    - Skydio Cloud (drone waypoints, simulated)
    - DataSF emergency-call feed (map overlay)
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have usable development defaults. API keys default to empty
    strings; endpoints that need a missing key answer with a configuration
    error instead of failing at import time.
    """

    # ── Image Understanding ───────────────────────────────────────────────
    # Which provider answers POST /api/analyze-image: "openai" or "gemini"
    vision_provider: str = Field(default="openai")

    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_api_url: str = Field(default="https://api.openai.com/v1/chat/completions")
    openai_model: str = Field(default="gpt-4o")

    gemini_api_key: str = Field(default="", description="Google Gemini API key")
    gemini_model: str = Field(default="gemini-1.5-flash")

    # Seconds to wait for a vision model answer (these calls are slow)
    vision_timeout: float = Field(default=60.0, gt=0, le=300)

    # ── Location Analysis ─────────────────────────────────────────────────
    # City named in the prompt and in templated descriptions when the client
    # does not send one
    default_city: str = Field(default="San Francisco")

    # Candidates kept per analysis (extra model output is truncated)
    max_candidates: int = Field(default=3, ge=1, le=10)

    # Confidence assigned when the model omits one, before normalization
    default_confidence: float = Field(default=0.7, gt=0)

    description_template: str = Field(default="Location in {city}")
    fallback_description_template: str = Field(
        default="Location in {city} based on image analysis"
    )

    # ── Google Maps ───────────────────────────────────────────────────────
    google_maps_api_key: str = Field(default="", description="Geocoding + browser Maps key")
    geocoding_api_url: str = Field(
        default="https://maps.googleapis.com/maps/api/geocode/json"
    )

    # ── Skydio (simulated) ────────────────────────────────────────────────
    skydio_api_key: str = Field(default="")
    skydio_api_secret: str = Field(default="")
    skydio_api_base_url: str = Field(default="https://api.skydio.com")

    # Altitude in meters reported for simulated waypoints
    waypoint_altitude: int = Field(default=50, ge=1, le=500)

    # ── Incident Feed ─────────────────────────────────────────────────────
    incidents_api_url: str = Field(default="https://data.sfgov.org/resource/wg3w-h783.json")
    incidents_default_limit: int = Field(default=50, ge=1, le=1000)

    # Timeout for the lightweight upstream calls (geocoding, incidents)
    http_timeout: float = Field(default=15.0, gt=0, le=120)

    # ── File Uploads ──────────────────────────────────────────────────────
    # Temporary home of uploaded images while they are analyzed
    upload_dir: str = Field(default="./uploads")

    # 5MB = 5 * 1024 * 1024
    max_file_size: int = Field(default=5_242_880, ge=1_048_576, le=52_428_800)

    # ── Front End ─────────────────────────────────────────────────────────
    # Mounted at "/" when the directory exists
    static_dir: str = Field(default="./public")

    # Comma-separated origins, or "*" for any origin
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("vision_provider")
    @classmethod
    def validate_vision_provider(cls, v: str) -> str:
        """Only the providers implemented in dronespot.services are accepted."""
        valid = {"openai", "gemini"}
        lower = v.lower()
        if lower not in valid:
            raise ValueError(f"Invalid vision_provider '{v}'. Must be one of: {valid}")
        return lower

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        Validates that the keys needed by the enabled features are configured.

        Called during app startup. Raises ValueError listing every problem.
        """
        errors = []
        if self.vision_provider == "openai" and not self.openai_api_key:
            errors.append("OPENAI_API_KEY is not set (image analysis will fail).")
        if self.vision_provider == "gemini" and not self.gemini_api_key:
            errors.append("GEMINI_API_KEY is not set (image analysis will fail).")
        if not self.google_maps_api_key:
            errors.append("GOOGLE_MAPS_API_KEY is not set (geocoding and maps are disabled).")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
