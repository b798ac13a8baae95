"""
Recipe Route Handlers
Catalog reads, authoring, likes and comments.
"""
import logging
import math
import re
from datetime import datetime, timezone

from bson import ObjectId
from pymongo import DESCENDING

from savora.database.mongo import RECIPES, USERS
from savora.models.recipe_model import RecipeIn
from savora.utils.errors import Forbidden, InvalidArgument, NotFound
from savora.utils.image_store import discard_image
from savora.utils.recipe_helper import comment_helper, recipe_helper
from savora.utils.user_helper import to_object_id

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500
MAX_PAGE_SIZE = 50


async def _load_users(db, user_ids) -> dict:
    ids = list({uid for uid in user_ids if uid is not None})
    if not ids:
        return {}
    docs = await db[USERS].find({"_id": {"$in": ids}}, {"name": 1}).to_list(length=None)
    return {d["_id"]: d for d in docs}


async def _get_recipe_doc(db, recipe_id: str) -> dict:
    rid = to_object_id(recipe_id, "recipe id")
    recipe = await db[RECIPES].find_one({"_id": rid})
    if not recipe:
        raise NotFound("Recipe not found")
    return recipe


async def _serialize(db, recipe) -> dict:
    user_ids = [recipe.get("author")] + [c.get("user") for c in recipe.get("comments", [])]
    return recipe_helper(recipe, await _load_users(db, user_ids))


# ==================== CATALOG HANDLERS ====================

async def list_recipes_handler(
    db,
    category: str | None = None,
    diet_type: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    query = {}
    if category:
        query["category"] = category
    if diet_type:
        query["dietType"] = diet_type
    if search:
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]

    cursor = db[RECIPES].find(query).sort("createdAt", DESCENDING).skip((page - 1) * limit).limit(limit)
    docs = await cursor.to_list(length=limit)
    total = await db[RECIPES].count_documents(query)

    users = await _load_users(db, [d.get("author") for d in docs])
    return {
        "recipes": [recipe_helper(d, users) for d in docs],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


async def get_recipe_handler(db, recipe_id: str) -> dict:
    return await _serialize(db, await _get_recipe_doc(db, recipe_id))


async def create_recipe_handler(db, image_store, current_user: dict, data: RecipeIn, image_data: bytes) -> dict:
    """
    Upload the image, then insert the recipe. If the insert fails the
    uploaded image is discarded before the error propagates.
    """
    url, public_id = await image_store.upload(image_data)

    now = datetime.now(timezone.utc)
    doc = data.model_dump(mode="json")
    doc.update({
        "image": {"url": url, "publicId": public_id},
        "likes": [],
        "comments": [],
        "author": current_user["_id"],
        "createdAt": now,
        "updatedAt": now,
    })
    try:
        result = await db[RECIPES].insert_one(doc)
    except Exception:
        await discard_image(image_store, public_id)
        raise
    doc["_id"] = result.inserted_id

    logger.info("Recipe %s created by %s", doc["_id"], current_user["_id"])
    return await _serialize(db, doc)


async def delete_recipe_handler(db, image_store, current_user: dict, recipe_id: str) -> None:
    """
    Author-only. The hosted image is removed best-effort before the record;
    a failed image delete is logged and leaves an orphaned image behind.
    """
    recipe = await _get_recipe_doc(db, recipe_id)

    if recipe.get("author") != current_user["_id"]:
        raise Forbidden("Not authorized to delete this recipe")

    public_id = (recipe.get("image") or {}).get("publicId")
    if public_id:
        await discard_image(image_store, public_id)

    await db[RECIPES].delete_one({"_id": recipe["_id"]})
    logger.info("Recipe %s deleted by %s", recipe["_id"], current_user["_id"])


# ==================== SOCIAL HANDLERS ====================

async def toggle_like_handler(db, current_user: dict, recipe_id: str) -> dict:
    """
    Like if not yet liked, unlike otherwise. Each branch is a single
    membership-conditional update so concurrent toggles never rewrite the array.
    """
    rid = to_object_id(recipe_id, "recipe id")
    uid = current_user["_id"]
    recipes = db[RECIPES]

    added = await recipes.update_one(
        {"_id": rid, "likes": {"$ne": uid}},
        {"$addToSet": {"likes": uid}},
    )
    liked = added.modified_count == 1
    if not liked:
        removed = await recipes.update_one({"_id": rid}, {"$pull": {"likes": uid}})
        if removed.matched_count == 0:
            raise NotFound("Recipe not found")

    recipe = await recipes.find_one({"_id": rid}, {"likes": 1})
    if not recipe:
        raise NotFound("Recipe not found")
    return {"liked": liked, "likeCount": len(recipe.get("likes", []))}


async def add_comment_handler(db, current_user: dict, recipe_id: str, text: str | None) -> list:
    """
    Append-only; comments keep insertion order
    """
    text = (text or "").strip()
    if not text:
        raise InvalidArgument("Comment text is required")
    if len(text) > MAX_COMMENT_LENGTH:
        raise InvalidArgument(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")

    rid = to_object_id(recipe_id, "recipe id")
    comment = {
        "_id": ObjectId(),
        "user": current_user["_id"],
        "text": text,
        "createdAt": datetime.now(timezone.utc),
    }
    result = await db[RECIPES].update_one({"_id": rid}, {"$push": {"comments": comment}})
    if result.matched_count == 0:
        raise NotFound("Recipe not found")

    recipe = await db[RECIPES].find_one({"_id": rid}, {"comments": 1})
    if not recipe:
        raise NotFound("Recipe not found")
    comments = recipe.get("comments", [])
    users = await _load_users(db, [c.get("user") for c in comments])
    return [comment_helper(c, users) for c in comments]
