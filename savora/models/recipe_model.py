from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator


class Difficulty(str, Enum):
    easy = "Easy"
    medium = "Medium"
    hard = "Hard"


class Category(str, Enum):
    breakfast = "Breakfast"
    lunch = "Lunch"
    dinner = "Dinner"
    snack = "Snack"
    dessert = "Dessert"
    beverage = "Beverage"


class DietType(str, Enum):
    balanced = "Balanced"
    keto = "Keto"
    vegan = "Vegan"
    intermittent = "Intermittent"
    fasting = "Fasting"


class IngredientLine(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: str = Field(..., min_length=1)


class Step(BaseModel):
    stepNumber: int = Field(..., ge=1)
    instruction: str = Field(..., min_length=1)


class RecipeIn(BaseModel):
    """Typed payload for the `recipe` form field of a multipart create request."""
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    ingredients: List[IngredientLine] = Field(default_factory=list)
    steps: List[Step] = Field(default_factory=list)
    prepTime: int = Field(0, ge=0)
    cookTime: int = Field(0, ge=0)
    servings: int = Field(1, ge=1)
    difficulty: Difficulty = Difficulty.medium
    category: Category = Category.lunch
    dietType: DietType = DietType.balanced

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class CommentIn(BaseModel):
    # Length rules are enforced by the comment handler so they surface as InvalidArgument
    text: str = ""
