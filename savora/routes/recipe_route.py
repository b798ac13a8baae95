from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from savora.auth.dependencies import get_current_user
from savora.database.mongo import get_db
from savora.models.recipe_model import Category, CommentIn, DietType, RecipeIn
from savora.utils.errors import BadRequest
from savora.utils.image_store import get_image_store, read_image_upload
from savora.utils.recipe_handlers import (
    add_comment_handler,
    create_recipe_handler,
    delete_recipe_handler,
    get_recipe_handler,
    list_recipes_handler,
    toggle_like_handler,
)
from savora.utils.response_helper import success_response

router = APIRouter()


# List with filters + pagination
@router.get("")
async def get_recipes(
    category: Category | None = None,
    dietType: DietType | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db=Depends(get_db),
):
    data = await list_recipes_handler(
        db,
        category=category.value if category else None,
        diet_type=dietType.value if dietType else None,
        search=search,
        page=page,
        limit=limit,
    )
    return success_response(data)


@router.get("/{recipe_id}")
async def get_recipe(recipe_id: str, db=Depends(get_db)):
    return success_response({"recipe": await get_recipe_handler(db, recipe_id)})


# Multipart: `image` file + `recipe` JSON document
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_recipe(
    recipe: str = Form(...),
    image: UploadFile | None = File(None),
    current_user=Depends(get_current_user),
    db=Depends(get_db),
    image_store=Depends(get_image_store),
):
    image_data = await read_image_upload(image)
    if image_data is None:
        raise BadRequest("Please upload a recipe image")

    # raises pydantic ValidationError -> 400 before anything is uploaded
    data = RecipeIn.model_validate_json(recipe)

    created = await create_recipe_handler(db, image_store, current_user, data, image_data)
    return success_response({"recipe": created}, "Recipe created successfully")


@router.post("/{recipe_id}/like")
async def toggle_like(recipe_id: str, current_user=Depends(get_current_user), db=Depends(get_db)):
    result = await toggle_like_handler(db, current_user, recipe_id)
    return success_response(result, "Recipe liked" if result["liked"] else "Recipe unliked")


@router.post("/{recipe_id}/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
    recipe_id: str,
    body: CommentIn,
    current_user=Depends(get_current_user),
    db=Depends(get_db),
):
    comments = await add_comment_handler(db, current_user, recipe_id, body.text)
    return success_response({"comments": comments}, "Comment added")


@router.delete("/{recipe_id}")
async def delete_recipe(
    recipe_id: str,
    current_user=Depends(get_current_user),
    db=Depends(get_db),
    image_store=Depends(get_image_store),
):
    await delete_recipe_handler(db, image_store, current_user, recipe_id)
    return success_response(message="Recipe deleted successfully")
