"""
Thin HTTP client for the SAVORA API.

Keeps the access token in memory and lets httpx's cookie jar carry the
refresh cookie. A protected call that comes back 401 triggers one refresh and
one retry; a failed refresh drops the access token and surfaces the error.
"""
import logging

import httpx

from savora.client.cart import Cart

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class SavoraClient:
    def __init__(
        self,
        base_url: str = "http://localhost:5000/api",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.access_token: str | None = None
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ==================== PLUMBING ====================

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}"} if self.access_token else {}

    @staticmethod
    def _unwrap(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.is_error or not body.get("success", False):
            raise ApiError(response.status_code, body.get("message", response.reason_phrase))
        return body

    def _request(self, method: str, url: str, *, retry: bool = True, **kwargs) -> dict:
        response = self._http.request(method, url, headers=self._headers(), **kwargs)
        if response.status_code == 401 and retry and self.access_token:
            logger.debug("Access token rejected, refreshing")
            self.refresh()
            response = self._http.request(method, url, headers=self._headers(), **kwargs)
        return self._unwrap(response)

    # ==================== AUTH ====================

    def register(self, name: str, email: str, password: str) -> dict:
        body = self._request("POST", "/auth/register", retry=False,
                             json={"name": name, "email": email, "password": password})
        self.access_token = body["data"]["accessToken"]
        return body["data"]["user"]

    def login(self, email: str, password: str) -> dict:
        body = self._request("POST", "/auth/login", retry=False,
                             json={"email": email, "password": password})
        self.access_token = body["data"]["accessToken"]
        return body["data"]["user"]

    def refresh(self) -> str:
        try:
            body = self._unwrap(self._http.post("/auth/refresh"))
        except ApiError:
            self.access_token = None
            raise
        self.access_token = body["data"]["accessToken"]
        return self.access_token

    def logout(self) -> None:
        try:
            self._request("POST", "/auth/logout")
        finally:
            self.access_token = None
            self._http.cookies.clear()

    def me(self) -> dict:
        return self._request("GET", "/auth/me")["data"]["user"]

    def toggle_favorite(self, recipe_id: str) -> dict:
        return self._request("POST", f"/auth/favorites/{recipe_id}")["data"]

    # ==================== RECIPES ====================

    def list_recipes(self, **params) -> dict:
        params = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", "/recipes", params=params)["data"]

    def get_recipe(self, recipe_id: str) -> dict:
        return self._request("GET", f"/recipes/{recipe_id}")["data"]["recipe"]

    def toggle_like(self, recipe_id: str) -> dict:
        return self._request("POST", f"/recipes/{recipe_id}/like")["data"]

    def add_comment(self, recipe_id: str, text: str) -> list:
        return self._request("POST", f"/recipes/{recipe_id}/comment", json={"text": text})["data"]["comments"]

    def delete_recipe(self, recipe_id: str) -> None:
        self._request("DELETE", f"/recipes/{recipe_id}")

    # ==================== INGREDIENTS / CART ====================

    def list_ingredients(self, category: str | None = None, search: str | None = None) -> list:
        params = {k: v for k, v in {"category": category, "search": search}.items() if v}
        return self._request("GET", "/ingredients", params=params)["data"]["ingredients"]

    def get_ingredient(self, ingredient_id: str) -> dict:
        return self._request("GET", f"/ingredients/{ingredient_id}")["data"]["ingredient"]

    def add_ingredient_to_cart(self, cart: Cart, ingredient_id: str, quantity: int = 1) -> None:
        cart.add_item(self.get_ingredient(ingredient_id), quantity)
