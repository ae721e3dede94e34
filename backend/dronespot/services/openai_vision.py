"""
DroneSpot Backend: OpenAI Vision Service
==========================================

What:  Asks an OpenAI vision model (gpt-4o by default) where a photo was taken.
How:   The stored image is base64-encoded into a data URI and posted to the
       chat completions endpoint together with the location prompt.
       The first choice's message content is returned verbatim.
Who:   Default VisionService (VISION_PROVIDER=openai).

Request body sent upstream:
    {
      "model": "gpt-4o",
      "messages": [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": [
            {"type": "text", "text": "<prompt>"},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,..."}}
        ]}
      ]
    }
"""

import base64
import logging
import time
import uuid
from typing import Any, Dict, Optional

import httpx

from dronespot.config import settings
from dronespot.exceptions import ConfigurationError, UpstreamServiceError
from dronespot.services.upload_service import StoredUpload, UploadService
from dronespot.services.vision_base import SYSTEM_PROMPT, VisionService, build_user_prompt

logger = logging.getLogger(__name__)


class OpenAIVisionService(VisionService):
    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        uploads: Optional[UploadService] = None,
    ):
        """
        Args default to settings. `transport` lets tests plug in an
        httpx.MockTransport instead of the network.
        """
        self.api_key = settings.openai_api_key if api_key is None else api_key
        self.api_url = api_url or settings.openai_api_url
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.vision_timeout
        self._transport = transport
        self._uploads = uploads or UploadService()

    def build_request(self, data_uri: str, city: str, count: int) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": build_user_prompt(city, count)},
                        {"type": "image_url", "image_url": {"url": data_uri}},
                    ],
                },
            ],
        }

    async def locate_image(self, upload: StoredUpload, city: str, count: int) -> str:
        if not self.api_key:
            raise ConfigurationError(message="OpenAI API key is not configured")

        call_id = str(uuid.uuid4())[:8]
        image_bytes = await self._uploads.read(upload.path)
        data_uri = f"data:{upload.mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        body = self.build_request(data_uri, city, count)

        logger.info(
            "[%s] Sending %s (%d bytes) to %s",
            call_id,
            upload.original_filename,
            upload.size,
            self.model,
        )
        start_time = time.perf_counter()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    json=body,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "[%s] OpenAI returned HTTP %d: %s",
                call_id,
                e.response.status_code,
                e.response.text[:500],
            )
            raise UpstreamServiceError(
                service="image analysis",
                context={"call_id": call_id, "upstream_status": e.response.status_code},
            )
        except httpx.RequestError as e:
            logger.error("[%s] OpenAI request failed: %s", call_id, e)
            raise UpstreamServiceError(
                service="image analysis",
                context={"call_id": call_id, "error_type": type(e).__name__},
            )
        except ValueError:
            raise UpstreamServiceError(
                service="image analysis",
                message="The image analysis service returned an unreadable response",
                context={"call_id": call_id},
            )

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.error("[%s] Unexpected OpenAI response shape: %r", call_id, payload)
            raise UpstreamServiceError(
                service="image analysis",
                message="The image analysis service returned an unexpected response",
                context={"call_id": call_id},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "[%s] OpenAI answered in %.0fms (%d chars)",
            call_id,
            duration_ms,
            len(content or ""),
        )
        return content or ""

    async def health_check(self) -> bool:
        return bool(self.api_key)
