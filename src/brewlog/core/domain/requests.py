"""
Create/update request models.

Requests carry record keys for references; the store turns them into
locators for the current owner. Update requests share the create shapes
because every repository write is a full replace.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PourInput(BaseModel):
    """One pour in a brew request."""

    model_config = ConfigDict(extra="forbid")

    water_amount: int = Field(0, ge=0)
    time_seconds: int = Field(0, ge=0)


class CreateBrewRequest(BaseModel):
    """Input for creating or replacing a brew."""

    model_config = ConfigDict(extra="forbid")

    bean_rkey: str = ""
    method: str = ""
    temperature: float = Field(0.0, ge=0)
    water_amount: int = Field(0, ge=0)
    coffee_amount: int = Field(0, ge=0)
    time_seconds: int = Field(0, ge=0)
    grind_size: str = ""
    grinder_rkey: str = ""
    brewer_rkey: str = ""
    tasting_notes: str = ""
    rating: int = Field(0, ge=0)
    pours: list[PourInput] = Field(default_factory=list)


class CreateBeanRequest(BaseModel):
    """Input for creating or replacing a bean."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    origin: str = ""
    roast_level: str = ""
    process: str = ""
    description: str = ""
    roaster_rkey: str = ""


class CreateRoasterRequest(BaseModel):
    """Input for creating or replacing a roaster."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    location: str = ""
    website: str = ""


class CreateGrinderRequest(BaseModel):
    """Input for creating or replacing a grinder."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    grinder_type: str = ""
    burr_type: str = ""
    notes: str = ""


class CreateBrewerRequest(BaseModel):
    """Input for creating or replacing a brewer."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    description: str = ""


UpdateBrewRequest = CreateBrewRequest
UpdateBeanRequest = CreateBeanRequest
UpdateRoasterRequest = CreateRoasterRequest
UpdateGrinderRequest = CreateGrinderRequest
UpdateBrewerRequest = CreateBrewerRequest
