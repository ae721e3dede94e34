# Services package init
"""
DroneSpot Backend: Services Layer
===================================

Service Inventory:
    - LocationExtractor: raw model text → candidate locations
    - confidence: candidate confidences → integer percentages summing to 100
    - LocationService: extract → truncate → normalize
    - VisionService (abstract): image-understanding providers
      (OpenAIVisionService, GeminiVisionService)
    - UploadService: image validation and temporary storage
    - GeocodingService, IncidentService, WaypointService: third-party relays

Services are injected into routes with FastAPI's Depends, so tests can
replace any of them through app.dependency_overrides.
"""
