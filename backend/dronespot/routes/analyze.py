"""
DroneSpot Backend: Image Analysis Route
=========================================

What:  POST /api/analyze-image, guessing where an uploaded photo was taken.
How:   multipart upload → UploadService (validate + temp file) → VisionService
       (raw model text) → LocationService (extract, truncate, normalize).
Who:   Called by the front end when the user drops a photo on the map.

Request Flow:
    1. Client sends multipart/form-data with an 'image' file and optional 'city'
    2. Image is validated (jpg/jpeg/png/gif, max 5MB) and written to upload_dir
    3. The vision provider returns its raw answer
    4. LocationService turns it into at most N candidates summing to 100
    5. The temporary file is removed whatever happened
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from dronespot.config import settings
from dronespot.exceptions import ValidationError
from dronespot.schemas.api import ErrorResponse
from dronespot.schemas.location import AnalyzeImageResponse
from dronespot.services.location_service import LocationService, get_location_service
from dronespot.services.upload_service import UploadService, get_upload_service
from dronespot.services.vision_base import VisionService, get_vision_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Analysis"])


@router.post(
    "/analyze-image",
    response_model=AnalyzeImageResponse,
    responses={
        400: {"description": "Missing or invalid image", "model": ErrorResponse},
        500: {"description": "No location found in the model answer", "model": ErrorResponse},
        503: {"description": "Image analysis provider unavailable", "model": ErrorResponse},
    },
    summary="Guess the location shown in a photo",
)
async def analyze_image(
    image: Optional[UploadFile] = File(default=None, description="Photo to locate (JPG, PNG or GIF, max 5MB)"),
    city: Optional[str] = Form(default=None, description="City the photo was taken in"),
    uploads: UploadService = Depends(get_upload_service),
    vision: VisionService = Depends(get_vision_service),
    locations: LocationService = Depends(get_location_service),
) -> AnalyzeImageResponse:
    if image is None:
        raise ValidationError(message="Image file is required", field="image")

    city = (city or "").strip() or settings.default_city
    filename = image.filename or "upload.jpg"

    try:
        content = await image.read()
    finally:
        await image.close()

    logger.info("Received analyze request: filename=%s, size=%d bytes, city=%s", filename, len(content), city)

    stored = await uploads.validate_and_store(
        filename=filename,
        content=content,
        content_type=image.content_type,
    )
    try:
        raw_text = await vision.locate_image(stored, city=city, count=locations.max_candidates)
    finally:
        await uploads.cleanup_file(stored.path)

    analysis = locations.locate(raw_text, city)
    return AnalyzeImageResponse(
        locations=analysis.candidates,
        image_filename=filename,
        extraction_method=analysis.method,
    )
