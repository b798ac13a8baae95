from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class IngredientCategory(str, Enum):
    vegetables = "Vegetables"
    fruits = "Fruits"
    dairy = "Dairy"
    meat = "Meat"
    seafood = "Seafood"
    grains = "Grains"
    spices = "Spices"
    other = "Other"


class IngredientIn(BaseModel):
    name: str = Field(..., min_length=1, examples=["Tomatoes"])
    category: IngredientCategory = IngredientCategory.other
    unit: str = Field("grams", examples=["kg"])
    pricePerUnit: float = Field(..., ge=0, examples=[40])
    stock: int = Field(100, ge=0)
    description: Optional[str] = Field(None, max_length=200)
    imageUrl: Optional[str] = None
