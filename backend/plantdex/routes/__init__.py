# Routes package init
"""
PlantDex Backend — API Routes Package
======================================

Route Inventory:
    - plants.py:  GET    /api/plants          (caller's collection)
                  GET    /api/plants/{id}     (one owned record)
                  POST   /api/plants          (submit photo or manual entry)
                  DELETE /api/plants/{id}     (remove owned record)
    - auth.py:    POST   /api/register, /api/login, /api/logout
                  GET    /api/user
    - health.py:  GET    /health

Routes stay thin: read the request, call a service, set the status code.
Ownership and resolution rules live in the services.
"""
