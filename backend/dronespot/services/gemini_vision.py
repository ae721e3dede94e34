"""
DroneSpot Backend: Google Gemini Vision Service
=================================================

What:  Alternative VisionService using Google Gemini (VISION_PROVIDER=gemini).
How:   Uploads the stored image with the Gemini SDK and sends it with the
       same location prompt the OpenAI provider uses; the response text is
       returned verbatim for LocationService to parse.
"""

import logging
import time
import uuid

import google.generativeai as genai

from dronespot.config import settings
from dronespot.exceptions import ConfigurationError, UpstreamServiceError
from dronespot.services.upload_service import StoredUpload
from dronespot.services.vision_base import SYSTEM_PROMPT, VisionService, build_user_prompt

logger = logging.getLogger(__name__)


class GeminiVisionService(VisionService):
    name = "gemini"

    def __init__(self):
        # The SDK keeps auth in module-level state
        if settings.gemini_api_key:
            genai.configure(api_key=settings.gemini_api_key)

        self.model = genai.GenerativeModel(
            settings.gemini_model,
            system_instruction=SYSTEM_PROMPT,
        )
        logger.info("GeminiVisionService initialized with model=%s", settings.gemini_model)

    async def locate_image(self, upload: StoredUpload, city: str, count: int) -> str:
        if not settings.gemini_api_key:
            raise ConfigurationError(message="Gemini API key is not configured")

        call_id = str(uuid.uuid4())[:8]
        logger.info("[%s] Starting Gemini location guess for %s", call_id, upload.original_filename)
        start_time = time.time()

        try:
            image_file = genai.upload_file(path=str(upload.path), mime_type=upload.mime_type)
            response = await self.model.generate_content_async(
                [build_user_prompt(city, count), image_file],
                request_options={"timeout": settings.vision_timeout},
            )
            text = response.text.strip() if response.text else ""
        except Exception as e:
            # The SDK raises assorted google.api_core and ValueError types
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "[%s] Gemini call failed after %.0fms: %s",
                call_id,
                duration_ms,
                str(e),
                exc_info=True,
            )
            raise UpstreamServiceError(
                service="image analysis",
                context={"call_id": call_id, "error_type": type(e).__name__},
            )

        duration_ms = (time.time() - start_time) * 1000
        logger.info("[%s] Gemini answered in %.0fms (%d chars)", call_id, duration_ms, len(text))
        return text

    async def health_check(self) -> bool:
        """Lists models (no token cost) to verify the key and connectivity."""
        if not settings.gemini_api_key:
            return False
        try:
            model_names = [m.name for m in genai.list_models()]
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False
        target = f"models/{settings.gemini_model}"
        if target not in model_names:
            logger.warning("Configured model %s not found in available models", target)
        return True
