import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from savora import config
from savora.database.mongo import ensure_indexes
from savora.routes import auth_route, ingredient_route, recipe_route
from savora.utils.errors import register_exception_handlers
from savora.utils.response_helper import success_response

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_indexes()
    logger.info("SAVORA API started (env=%s)", config.APP_ENV)
    yield


app = FastAPI(title="SAVORA API", lifespan=lifespan)

# Add routers
app.include_router(auth_route.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(recipe_route.router, prefix="/api/recipes", tags=["Recipes"])
app.include_router(ingredient_route.router, prefix="/api/ingredients", tags=["Ingredients"])

register_exception_handlers(app)

# Cookies must cross origins for the refresh flow, so no wildcard origin here
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health():
    return {
        **success_response(message="SAVORA API is running"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
