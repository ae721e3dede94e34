# Middleware package init
"""
DroneSpot Backend: Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    - Request ID first, so every log line of a request can carry it
    - Logging measures the full handler time, including upstream API calls
"""
