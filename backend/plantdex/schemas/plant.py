"""
PlantDex Backend — Plant Schemas
=================================

What:  Pydantic models for the plant API contract and the store boundary.
Why:   The client speaks camelCase (scientificName, imageUrl, careTips);
       Python code speaks snake_case. An alias generator bridges the two so
       both spellings validate and responses go out in camelCase.

    PlantSubmission  — what POST /api/plants accepts (every field optional)
    PlantFields      — the fully resolved values handed to a store
    PlantRecord      — a persisted record, returned by stores and the API
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PlantSubmission(CamelModel):
    """
    Body of POST /api/plants.

    Every field is optional and absent text is not an error; placeholders
    are filled in by PlantService. Non-string values are rejected.
    `image_url` is either an http(s) URL or a data URI with the photo.
    """
    name: Optional[str] = Field(default=None, description="Common name")
    scientific_name: Optional[str] = Field(default=None, description="Scientific name")
    image_url: Optional[str] = Field(
        default=None,
        description="Image URL or embedded data URI (data:image/...;base64,...)",
    )
    habitat: Optional[str] = Field(default=None, description="Habitat description")
    care_tips: Optional[str] = Field(default=None, description="Care instructions")

    model_config = ConfigDict(extra="ignore")


class PlantFields(CamelModel):
    """Resolved record content; no id, owner or timestamp yet."""
    name: str
    scientific_name: str
    image_url: str
    habitat: str
    care_tips: str


class PlantRecord(PlantFields):
    """A stored plant, as returned by GET /api/plants and friends."""
    id: int = Field(description="Store-assigned identifier")
    user_id: int = Field(description="Owning user")
    created_at: datetime = Field(description="Creation time (UTC)")


# ── Placeholders ──────────────────────────────────────────────────────────
# Substituted for any field the caller (or Plant.id) left empty.
DEFAULT_NAME = "Unknown Plant"
DEFAULT_SCIENTIFIC_NAME = "Plantus Unknownus"
DEFAULT_HABITAT = "Various habitats"
DEFAULT_CARE_TIPS = "Water regularly, provide adequate sunlight"
DEFAULT_IMAGE_URL = "https://placehold.co/400x300"
