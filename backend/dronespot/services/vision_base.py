"""
DroneSpot Backend: Abstract Vision Service Interface
======================================================

What:  Contract for image-understanding providers that guess where a photo
       was taken.
How:   Concrete providers inherit from VisionService and implement
       locate_image() and health_check(). The provider is chosen by the
       VISION_PROVIDER setting (see get_vision_service()).
Who:   Called by POST /api/analyze-image.

Implementations:
    - OpenAIVisionService: OpenAI chat completions with an image part (default)
    - GeminiVisionService: Google Gemini Vision via google-generativeai

Providers only return the model's raw text. Turning that text into map
candidates is LocationService's job, so every provider goes through the same
parsing and normalization.
"""

from abc import ABC, abstractmethod
from functools import lru_cache

from dronespot.services.upload_service import StoredUpload

SYSTEM_PROMPT = (
    "You are a location identification expert who specializes in identifying places "
    "from images. Your task is to analyze the image and determine the most likely "
    "locations shown in the image. Be as specific as possible. IMPORTANT: Return ONLY "
    "raw JSON without any markdown formatting, explanation or code blocks."
)

USER_PROMPT_TEMPLATE = (
    "This image is from {city}. Please analyze it and provide the top {count} most "
    "probable locations for the place shown, with their coordinates and a confidence "
    'score. Return ONLY a plain JSON object with a "locations" array containing {count} '
    "objects, each with these keys: lat (number), lng (number), location_description "
    "(string), confidence (integer between 0 and 100). The sum of the {count} confidence "
    "values must be exactly 100. Sort the locations by confidence in descending order. "
    "Do not include code blocks, backticks, or any other formatting."
)


def build_user_prompt(city: str, count: int) -> str:
    return USER_PROMPT_TEMPLATE.format(city=city, count=count)


class VisionService(ABC):
    """
    Abstract interface for image-based location guessing.

    Contract:
        - locate_image() returns the model's raw text answer, unparsed
        - provider-specific failures are wrapped in UpstreamServiceError
        - a missing API key raises ConfigurationError before any network call
    """

    name: str = ""

    @abstractmethod
    async def locate_image(self, upload: StoredUpload, city: str, count: int) -> str:
        """
        Ask the model for the `count` most probable locations shown in the image.

        Args:
            upload: The stored image (path and MIME type).
            city:   City the photo is known to come from; steers the model.
            count:  Number of candidate locations requested.

        Returns:
            The model's answer as plain text (ideally JSON, not guaranteed).

        Raises:
            ConfigurationError: provider credentials are missing.
            UpstreamServiceError: the provider call failed.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight readiness probe (no image is sent, no tokens are spent).

        Returns True if the provider looks usable, False otherwise.
        """
        ...


@lru_cache
def get_vision_service() -> VisionService:
    """
    FastAPI dependency returning the configured provider (one per process).

    Imports are local so the Gemini SDK is only loaded when selected.
    """
    from dronespot.config import settings

    if settings.vision_provider == "gemini":
        from dronespot.services.gemini_vision import GeminiVisionService

        return GeminiVisionService()

    from dronespot.services.openai_vision import OpenAIVisionService

    return OpenAIVisionService()
