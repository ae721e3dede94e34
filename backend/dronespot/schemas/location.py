"""
DroneSpot Backend: Location Schemas
=====================================

What:  Pydantic models for candidate locations and image-analysis results.
Who:   Built by the location extractor, rewritten by the confidence
       normalizer, serialized by POST /api/analyze-image.

Wire shape of a candidate (what the map front end plots):
    {"lat": 37.8199, "lng": -122.4783,
     "location_description": "Golden Gate Bridge, south tower",
     "confidence": 62}
"""

from typing import List, Union

from pydantic import BaseModel, Field


class CandidateLocation(BaseModel):
    """
    A single proposed place with coordinates, description, and confidence.

    confidence is unconstrained on input (0-1 fractions and 0-100 scores both
    occur in model output). After normalization it is an integer percentage.
    Union[int, float] keeps integers as integers in the JSON response.
    """
    lat: float = Field(ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(ge=-180, le=180, description="Longitude in degrees")
    location_description: str = Field(description="Free-text description of the place")
    confidence: Union[int, float] = Field(description="Confidence score or percentage")


class AnalyzeImageResponse(BaseModel):
    """
    Response of POST /api/analyze-image.

    extraction_method tells which parsing strategy recovered the locations:
    "json" (clean answer), "fenced_json" (answer wrapped in a code block), or
    "regex" (only latitude/longitude labels were found, single candidate).
    """
    locations: List[CandidateLocation] = Field(
        description="Finalized candidates, confidences summing to 100"
    )
    image_filename: str = Field(description="Original filename of the uploaded image")
    extraction_method: str = Field(description="json, fenced_json or regex")
