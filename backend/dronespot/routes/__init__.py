# Routes package init
"""
DroneSpot Backend: API Routes Package
=======================================

Route Inventory:
    - analyze.py:  POST /api/analyze-image   (photo → candidate locations)
    - geocode.py:  POST /api/geocode         (address → coordinates)
    - waypoint.py: POST /api/waypoint        (simulated drone waypoint)
    - maps.py:     GET  /api/maps-api-key    (browser Maps key)
                   GET  /api/911-calls       (incident overlay)
    - health.py:   GET  /health, GET /api/test

Routes stay thin: they read the request, call a service, and return its
result. Errors propagate to the global handlers in main.py.
"""
