"""
DroneSpot Backend: Application Package
========================================

A thin FastAPI backend for a map front end: geocoding, photo-based location
guessing, and (simulated) drone waypoints.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← parsing, normalization, relays
    ├─────────────────────────────────────┤
    │             Schemas (Data)          │  ← Pydantic API contracts
    └─────────────────────────────────────┘

Nothing is persisted: every request lives and dies with its response.
"""

__version__ = "1.0.0"
