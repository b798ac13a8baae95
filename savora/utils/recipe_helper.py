from savora.utils.user_helper import author_helper


def comment_helper(comment, users: dict) -> dict:
    user_id = comment.get("user")
    return {
        "_id": str(comment["_id"]) if comment.get("_id") else None,
        "user": author_helper(users.get(user_id)) or {"_id": str(user_id), "name": ""},
        "text": comment["text"],
        "createdAt": comment.get("createdAt"),
    }


def recipe_helper(recipe, users: dict | None = None) -> dict:
    """Serialize a recipe document, resolving author/comment users from `users` (id -> user doc)."""
    users = users or {}
    likes = recipe.get("likes", [])
    comments = recipe.get("comments", [])
    prep_time = recipe.get("prepTime", 0)
    cook_time = recipe.get("cookTime", 0)
    author_id = recipe.get("author")
    return {
        "_id": str(recipe["_id"]),
        "title": recipe["title"],
        "description": recipe.get("description", ""),
        "image": recipe.get("image", {}),
        "ingredients": recipe.get("ingredients", []),
        "steps": recipe.get("steps", []),
        "prepTime": prep_time,
        "cookTime": cook_time,
        "totalTime": prep_time + cook_time,
        "servings": recipe.get("servings", 1),
        "difficulty": recipe.get("difficulty"),
        "category": recipe.get("category"),
        "dietType": recipe.get("dietType"),
        "likes": [str(u) for u in likes],
        "likeCount": len(likes),
        "comments": [comment_helper(c, users) for c in comments],
        "commentCount": len(comments),
        "author": author_helper(users.get(author_id)) or {"_id": str(author_id), "name": ""},
        "createdAt": recipe.get("createdAt"),
        "updatedAt": recipe.get("updatedAt"),
    }


def ingredient_helper(ingredient) -> dict:
    return {
        "_id": str(ingredient["_id"]),
        "name": ingredient["name"],
        "image": ingredient.get("image", {}),
        "category": ingredient.get("category", "Other"),
        "unit": ingredient.get("unit", "grams"),
        "pricePerUnit": ingredient["pricePerUnit"],
        "stock": ingredient.get("stock", 100),
        "description": ingredient.get("description"),
        "createdAt": ingredient.get("createdAt"),
    }
