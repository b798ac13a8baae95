from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from savora.auth.dependencies import get_current_user
from savora.database.mongo import get_db
from savora.models.ingredients_model import IngredientCategory, IngredientIn
from savora.utils.image_store import get_image_store, read_image_upload
from savora.utils.ingredient_handlers import (
    create_ingredient_handler,
    get_ingredient_handler,
    list_ingredients_handler,
)
from savora.utils.response_helper import success_response

router = APIRouter()


@router.get("")
async def get_ingredients(
    category: IngredientCategory | None = None,
    search: str | None = None,
    db=Depends(get_db),
):
    ingredients = await list_ingredients_handler(
        db, category=category.value if category else None, search=search
    )
    return success_response({"ingredients": ingredients})


@router.get("/{ingredient_id}")
async def get_ingredient(ingredient_id: str, db=Depends(get_db)):
    return success_response({"ingredient": await get_ingredient_handler(db, ingredient_id)})


# Multipart: optional `image` file plus the ingredient fields; `imageUrl` is used when no file is sent
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ingredient(
    name: str | None = Form(None),
    category: str | None = Form(None),
    unit: str | None = Form(None),
    pricePerUnit: str | None = Form(None),
    stock: str | None = Form(None),
    description: str | None = Form(None),
    imageUrl: str | None = Form(None),
    image: UploadFile | None = File(None),
    current_user=Depends(get_current_user),
    db=Depends(get_db),
    image_store=Depends(get_image_store),
):
    fields = {
        "name": name,
        "category": category,
        "unit": unit,
        "pricePerUnit": pricePerUnit,
        "stock": stock,
        "description": description,
        "imageUrl": imageUrl,
    }
    # raises pydantic ValidationError -> 400 before anything is uploaded
    data = IngredientIn.model_validate({k: v for k, v in fields.items() if v is not None})
    image_data = await read_image_upload(image)

    ingredient = await create_ingredient_handler(db, image_store, data, image_data)
    return success_response({"ingredient": ingredient}, "Ingredient created successfully")
