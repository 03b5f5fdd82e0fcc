"""Wire models for HashiCups API payloads.

These mirror the JSON the API sends and receives. Unknown keys are ignored so
the client keeps working when the backend adds fields.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class WireIngredient(_WireModel):
    id: int = Field(alias="ingredient_id")


class WireCoffee(_WireModel):
    id: int
    name: str = ""
    teaser: str = ""
    collection: str = ""
    origin: str = ""
    color: str = ""
    description: str = ""
    price: float = 0.0
    image: str = ""
    ingredients: list[WireIngredient] = Field(default_factory=list)


class WireOrderItem(_WireModel):
    coffee: WireCoffee
    quantity: int


class WireOrder(_WireModel):
    # The API answers with a number; some deployments echo it back as a string.
    id: StrictInt | StrictStr | None = None
    items: list[WireOrderItem] = Field(default_factory=list)
