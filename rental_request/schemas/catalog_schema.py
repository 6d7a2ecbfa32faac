"""Equipment catalog models consumed by the equipment step."""

from typing import Optional

from pydantic import BaseModel, Field


class EquipmentModel(BaseModel):
    """One rentable machine from the content catalog."""
    id: str
    code: str
    name: str
    blurb: str = ""
    image_url: str = ""
    video_url: Optional[str] = None


class EquipmentOption(BaseModel):
    """Selectable entry shown on the equipment step."""
    value: str
    label: str
    description: str = ""
    thumbnail: str = ""
    video: Optional[str] = None


class Catalog(BaseModel):
    """Equipment list plus the CMS form reference used for form submissions."""
    models: list[EquipmentModel] = Field(default_factory=list)
    form_ref: Optional[str] = None
