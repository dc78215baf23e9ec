# Services package init
"""
PlantDex Backend — Services Layer
==================================

What:  Business logic between routes (HTTP) and record stores (persistence).
How:   Services receive their collaborators in the constructor; routes get
       them through FastAPI dependencies (plantdex.dependencies).

Service Inventory:
    - IdentificationClient (abstract) / PlantIdClient: photo → plant names
    - images: data URI recognition and validation
    - PlantService: submit → identify → resolve → store, plus ownership checks
    - AuthService: registration and password checks
"""
