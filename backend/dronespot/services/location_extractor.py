"""
DroneSpot Backend: Location Extractor
=======================================

What:  Turns the free-form text returned by an image-understanding model into
       a list of CandidateLocation objects.
How:   An ordered chain of parsing strategies. Each strategy is a pure
       function returning either Extracted (success) or Failed (reason), and
       the first success wins:

           1. json         the whole answer is a JSON object
           2. fenced_json  a JSON object inside a ``` fenced block
           3. regex        "Latitude: 37.77" / "Longitude: -122.41" labels

       A fenced block that is present but does not parse stops the chain with
       MalformedPayloadError. Exhausting the chain raises ExtractionError.
Who:   Called by LocationService for every analyzed image.

Models are asked for raw JSON but regularly wrap it in markdown fences or
answer in prose, so all three shapes occur in practice.

Defaults (confidence, description templates) come from ExtractorConfig,
passed in explicitly; this module reads no global state.
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from dronespot.exceptions import ExtractionError, MalformedPayloadError
from dronespot.schemas.location import CandidateLocation

logger = logging.getLogger(__name__)

# Opening fence with an optional language tag, a JSON object, closing fence
FENCED_OBJECT_RE = re.compile(r"```(?:[A-Za-z0-9_+-]+)?\s*(\{[\s\S]*?\})\s*```")

LATITUDE_RE = re.compile(r"latitude[:\s]+(-?\d+\.?\d*)", re.IGNORECASE)
LONGITUDE_RE = re.compile(r"longitude[:\s]+(-?\d+\.?\d*)", re.IGNORECASE)


@dataclass(frozen=True)
class ExtractorConfig:
    """
    Defaults used when the model leaves fields out.

    Templates are str.format strings receiving the keyword `city`.
    """
    default_confidence: float = 0.7
    description_template: str = "Location in {city}"
    fallback_description_template: str = "Location in {city} based on image analysis"

    @classmethod
    def from_settings(cls, settings: Any) -> "ExtractorConfig":
        return cls(
            default_confidence=settings.default_confidence,
            description_template=settings.description_template,
            fallback_description_template=settings.fallback_description_template,
        )


# ══════════════════════════════════════════════════════════════════════════
# Strategy results
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Extracted:
    candidates: List[CandidateLocation]
    method: str


@dataclass(frozen=True)
class Failed:
    reason: str
    # Terminal failures end the chain instead of falling through
    terminal: bool = False


StrategyResult = Union[Extracted, Failed]


@dataclass(frozen=True)
class ExtractionResult:
    """Candidates recovered from one model answer and the strategy that found them."""
    candidates: List[CandidateLocation]
    method: str


# ══════════════════════════════════════════════════════════════════════════
# Extractor
# ══════════════════════════════════════════════════════════════════════════


class LocationExtractor:
    """
    Runs the parsing strategies in order against one model answer.

    Stateless apart from its immutable config, so one instance can serve
    concurrent requests.
    """

    def __init__(self, config: Optional[ExtractorConfig] = None):
        self.config = config or ExtractorConfig()
        self._strategies: Sequence[Callable[[str, str], StrategyResult]] = (
            self._from_json,
            self._from_fenced_block,
            self._from_labels,
        )

    def run(self, raw_text: str, city: str) -> ExtractionResult:
        """
        Extract candidate locations from raw model output.

        Args:
            raw_text: The model's answer, verbatim.
            city:     City used to fill templated descriptions.

        Returns:
            ExtractionResult with at least one candidate.

        Raises:
            MalformedPayloadError: a fenced block was found but is not valid JSON.
            ExtractionError: no strategy recovered any location.
        """
        text = raw_text or ""
        reasons = []

        for strategy in self._strategies:
            outcome = strategy(text, city)
            if isinstance(outcome, Extracted):
                logger.info(
                    "Extracted %d candidate(s) using %s",
                    len(outcome.candidates),
                    outcome.method,
                )
                return ExtractionResult(candidates=outcome.candidates, method=outcome.method)

            reasons.append(outcome.reason)
            if outcome.terminal:
                logger.warning("Extraction stopped: %s", outcome.reason)
                raise MalformedPayloadError(context={"reasons": reasons})
            logger.debug("Strategy %s failed: %s", strategy.__name__, outcome.reason)

        raise ExtractionError(context={"reasons": reasons, "response_length": len(text)})

    # ── Strategies ────────────────────────────────────────────────────────

    def _from_json(self, text: str, city: str) -> StrategyResult:
        try:
            payload = json.loads(text)
        except (ValueError, RecursionError):
            return Failed("response is not JSON")
        return self._from_payload(payload, city, method="json")

    def _from_fenced_block(self, text: str, city: str) -> StrategyResult:
        match = FENCED_OBJECT_RE.search(text)
        if not match:
            return Failed("no fenced JSON block")
        try:
            payload = json.loads(match.group(1))
        except (ValueError, RecursionError) as e:
            return Failed(f"fenced block is not valid JSON: {e}", terminal=True)
        return self._from_payload(payload, city, method="fenced_json")

    def _from_labels(self, text: str, city: str) -> StrategyResult:
        lat_match = LATITUDE_RE.search(text)
        lng_match = LONGITUDE_RE.search(text)
        if not (lat_match and lng_match):
            return Failed("no latitude/longitude labels")

        candidate = self._build_candidate(
            lat=float(lat_match.group(1)),
            lng=float(lng_match.group(1)),
            description=None,
            confidence=None,
            city=city,
            template=self.config.fallback_description_template,
        )
        if candidate is None:
            return Failed("labeled coordinates out of range")
        return Extracted([candidate], method="regex")

    # ── Helpers ───────────────────────────────────────────────────────────

    def _from_payload(self, payload: Any, city: str, method: str) -> StrategyResult:
        """Reads a parsed JSON value: a `locations` list or a flat lat/lng object."""
        if not isinstance(payload, dict):
            return Failed(f"JSON value is a {type(payload).__name__}, not an object")

        entries = payload.get("locations")
        if isinstance(entries, list) and entries:
            candidates = [
                c for c in (self._candidate_from_entry(e, city) for e in entries)
                if c is not None
            ]
            if not candidates:
                return Failed("no usable entries in locations list")
            dropped = len(entries) - len(candidates)
            if dropped:
                logger.warning("Dropped %d location entries without usable coordinates", dropped)
            return Extracted(candidates, method=method)

        if payload.get("lat") is not None and payload.get("lng") is not None:
            candidate = self._candidate_from_entry(payload, city)
            if candidate is not None:
                return Extracted([candidate], method=method)

        return Failed("JSON object holds no location data")

    def _candidate_from_entry(self, entry: Any, city: str) -> Optional[CandidateLocation]:
        if not isinstance(entry, dict):
            return None
        return self._build_candidate(
            lat=entry.get("lat"),
            lng=entry.get("lng"),
            description=entry.get("location_description") or entry.get("description"),
            confidence=entry.get("confidence"),
            city=city,
            template=self.config.description_template,
        )

    def _build_candidate(
        self,
        lat: Any,
        lng: Any,
        description: Any,
        confidence: Any,
        city: str,
        template: str,
    ) -> Optional[CandidateLocation]:
        if lat is None or lng is None:
            return None
        try:
            return CandidateLocation(
                lat=lat,
                lng=lng,
                location_description=str(description) if description else template.format(city=city),
                confidence=self._coerce_confidence(confidence),
            )
        except PydanticValidationError as e:
            logger.debug("Rejected candidate lat=%r lng=%r: %s", lat, lng, e.errors())
            return None

    def _coerce_confidence(self, value: Any) -> Union[int, float]:
        """Missing or unreadable confidences get the configured default."""
        if isinstance(value, bool) or value is None:
            return self.config.default_confidence
        if isinstance(value, (int, float)):
            try:
                number = float(value)
            except OverflowError:
                return self.config.default_confidence
            return value if math.isfinite(number) else self.config.default_confidence
        if isinstance(value, str):
            try:
                number = float(value.strip().rstrip("%"))
            except ValueError:
                return self.config.default_confidence
            return number if math.isfinite(number) else self.config.default_confidence
        return self.config.default_confidence


def extract(
    raw_text: str,
    city_default: str,
    config: Optional[ExtractorConfig] = None,
) -> List[CandidateLocation]:
    """
    Extract candidate locations from raw model output.

    Convenience wrapper around LocationExtractor.run() for callers that do
    not need to know which strategy succeeded.

    Raises:
        ExtractionError (or MalformedPayloadError) when nothing is recoverable.
    """
    return LocationExtractor(config).run(raw_text, city_default).candidates
