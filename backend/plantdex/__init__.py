"""
PlantDex Backend — Application Package
=======================================

What: Backend for PlantDex, a per-user plant collection built from photos.
Who:  Imported by uvicorn (plantdex.main:app), Alembic, and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │     Routes + Access Boundary        │  ← HTTP, sessions, status codes
    ├─────────────────────────────────────┤
    │   Services (PlantService, Auth,     │  ← Validation, resolution rule,
    │   IdentificationClient)             │    ownership, Plant.id calls
    ├─────────────────────────────────────┤
    │   Stores (RecordStore interface)    │  ← Database or in-memory backing
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    The store backend is chosen when the app is wired (create_app), never
    through module-level state, so tests can hand each app its own store.
"""

__version__ = "1.0.0"
