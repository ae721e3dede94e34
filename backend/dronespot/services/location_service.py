"""
DroneSpot Backend: Location Service
=====================================

What:  Turns one raw model answer into the final list of map candidates.
How:   extract → keep the first N → normalize confidences to 100.
Who:   Called by POST /api/analyze-image after the vision provider answers.

    raw text ──▶ LocationExtractor ──▶ truncate(max_candidates) ──▶ normalize ──▶ response
                                                                     │
                                                      NormalizationError
                                                                     ▼
                                                               equal_split

Every extraction path ends here, including the single regex candidate, so
clients always receive integer confidences summing to 100.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from dronespot.config import settings
from dronespot.exceptions import NormalizationError
from dronespot.schemas.location import CandidateLocation
from dronespot.services.confidence import equal_split, normalize
from dronespot.services.location_extractor import ExtractorConfig, LocationExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocationAnalysis:
    candidates: List[CandidateLocation]
    method: str


class LocationService:
    def __init__(self, max_candidates: int = 3, config: Optional[ExtractorConfig] = None):
        self.max_candidates = max_candidates
        self.extractor = LocationExtractor(config)

    def locate(self, raw_text: str, city: str) -> LocationAnalysis:
        """
        Extract, truncate and normalize candidates from a model answer.

        Raises:
            ExtractionError: the answer holds no recoverable location.
        """
        result = self.extractor.run(raw_text, city)
        return LocationAnalysis(
            candidates=self.finalize(result.candidates),
            method=result.method,
        )

    def finalize(self, candidates: List[CandidateLocation]) -> List[CandidateLocation]:
        """Keeps the first `max_candidates` and rescales their confidences to sum to 100."""
        kept = list(candidates[: self.max_candidates])
        if len(candidates) > len(kept):
            logger.info("Truncated %d candidates to %d", len(candidates), len(kept))

        try:
            return normalize(kept)
        except NormalizationError as e:
            split = equal_split(len(kept))
            logger.warning("%s; using equal split %s", e.message, split)
            return [
                candidate.model_copy(update={"confidence": pct})
                for candidate, pct in zip(kept, split)
            ]


def get_location_service() -> LocationService:
    """FastAPI dependency building the service from application settings."""
    return LocationService(
        max_candidates=settings.max_candidates,
        config=ExtractorConfig.from_settings(settings),
    )
