"""
DroneSpot Backend: Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the different failure scenarios.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into JSON error
       responses with the right HTTP status code.
Who:   Raised by services and routes; caught by the global handlers.

Exception Hierarchy:
    DroneSpotError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── GeocodingError           → 400 Bad Request (geocoder rejected the address)
    ├── ConfigurationError       → 500 Internal Server Error (missing API key)
    ├── ExtractionError          → 500 Internal Server Error (no location in model output)
    │   └── MalformedPayloadError   (fenced JSON block that does not parse)
    ├── NormalizationError       → 500 Internal Server Error (zero-sum confidences)
    ├── UpstreamServiceError     → 503 Service Unavailable (third-party API failed)
    └── FileStorageError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class DroneSpotError(Exception):
    """
    Base exception for all DroneSpot application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info, returned as "details" only by the
                  handlers that choose to expose it
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DroneSpotError):
    """
    Raised when client input fails validation.

    When:    Missing address or coordinates, unsupported image type, oversized upload.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class GeocodingError(DroneSpotError):
    """
    Raised when the geocoding API answers with a non-OK status.

    The upstream status (ZERO_RESULTS, INVALID_REQUEST, ...) is kept so the
    front end can tell "nothing found" apart from a bad request.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        status: str,
        message: str = "Failed to geocode address",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["status"] = status
        super().__init__(message=message, context=ctx)
        self.status = status


class ConfigurationError(DroneSpotError):
    """
    Raised when a feature is used without the configuration it needs.

    When:    GOOGLE_MAPS_API_KEY unset for geocoding, Skydio credentials unset
             for waypoints, vision provider key unset for image analysis.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Server configuration is incomplete",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExtractionError(DroneSpotError):
    """
    Raised when a model response holds no recoverable location data.

    Never retried: the model answer is what it is. The caller reports the
    request as failed.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "no recoverable location data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MalformedPayloadError(ExtractionError):
    """
    Raised when a fenced code block was found but its contents are not JSON.

    Separate type for diagnostics only; callers see the same status as
    any other ExtractionError.
    """

    def __init__(
        self,
        message: str = "malformed delimited payload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NormalizationError(DroneSpotError):
    """
    Raised when confidences cannot be rescaled to percentages.

    When:    All confidences are zero or missing, or a value is negative or
             not finite. The location pipeline catches this and substitutes
             an equal split; it only reaches the client if raised elsewhere.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "cannot normalize zero-sum confidences",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamServiceError(DroneSpotError):
    """
    Raised when a third-party API call fails (network error, timeout, 5xx).

    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["service"] = service
        super().__init__(
            message=message or f"The {service} service is temporarily unavailable",
            context=ctx,
        )
        self.service = service


class FileStorageError(DroneSpotError):
    """
    Raised when the temporary upload cannot be written or read.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
