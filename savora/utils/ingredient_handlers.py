"""
Ingredient catalog handlers. The catalog is the read source for the client cart.
"""
import logging
import re
from datetime import datetime, timezone

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from savora.database.mongo import INGREDIENTS
from savora.models.ingredients_model import IngredientIn
from savora.utils.errors import BadRequest, Conflict, NotFound
from savora.utils.image_store import discard_image
from savora.utils.recipe_helper import ingredient_helper
from savora.utils.user_helper import to_object_id

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "Ingredient already exists"


async def list_ingredients_handler(db, category: str | None = None, search: str | None = None) -> list:
    query = {}
    if category:
        query["category"] = category
    if search:
        query["name"] = {"$regex": re.escape(search.strip()), "$options": "i"}

    docs = await db[INGREDIENTS].find(query).sort("name", ASCENDING).to_list(length=None)
    return [ingredient_helper(d) for d in docs]


async def get_ingredient_handler(db, ingredient_id: str) -> dict:
    ingredient = await db[INGREDIENTS].find_one({"_id": to_object_id(ingredient_id, "ingredient id")})
    if not ingredient:
        raise NotFound("Ingredient not found")
    return ingredient_helper(ingredient)


async def create_ingredient_handler(db, image_store, data: IngredientIn, image_data: bytes | None = None) -> dict:
    """
    Names are unique regardless of case. An uploaded image wins over
    `imageUrl`; it is discarded again if the insert fails.
    """
    name = data.name.strip()
    if not name:
        raise BadRequest("Ingredient name is required")

    existing = await db[INGREDIENTS].find_one(
        {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}},
        {"_id": 1},
    )
    if existing:
        raise Conflict(ALREADY_EXISTS)

    image = {"url": data.imageUrl, "publicId": None}
    if image_data is not None:
        url, public_id = await image_store.upload(image_data)
        image = {"url": url, "publicId": public_id}

    now = datetime.now(timezone.utc)
    doc = data.model_dump(mode="json", exclude={"imageUrl"})
    doc.update({
        "name": name,
        "image": image,
        "createdAt": now,
        "updatedAt": now,
    })
    try:
        result = await db[INGREDIENTS].insert_one(doc)
    except Exception as e:
        if image["publicId"]:
            await discard_image(image_store, image["publicId"])
        if isinstance(e, DuplicateKeyError):
            raise Conflict(ALREADY_EXISTS) from e
        raise
    doc["_id"] = result.inserted_id

    logger.info("Ingredient %s created", doc["_id"])
    return ingredient_helper(doc)
