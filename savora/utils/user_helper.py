from bson import ObjectId

from savora.utils.errors import BadRequest

# Fields never loaded for API use
PRIVATE_FIELDS = {"password": 0, "refreshToken": 0}


def to_object_id(value, label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise BadRequest(f"Invalid {label}")
    return ObjectId(value)


def user_helper(user, favorites=None) -> dict:
    """Public view of a user document; password and refresh token are never included."""
    return {
        "_id": str(user["_id"]),
        "name": user.get("name", ""),
        "email": user["email"],
        "favorites": favorites if favorites is not None else [str(f) for f in user.get("favorites", [])],
        "createdAt": user.get("createdAt"),
    }


def author_helper(user) -> dict | None:
    if not user:
        return None
    return {"_id": str(user["_id"]), "name": user.get("name", "")}
