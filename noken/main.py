import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from noken.admin.api import router as admin_router
from noken.auth.api import router as auth_router
from noken.chatbot.api import router as chatbot_router
from noken.commentaires.api import router as commentaires_router
from noken.config import settings
from noken.cv.api import router as cv_router
from noken.db.session import init_models
from noken.exceptions import error_body, register_exception_handlers
from noken.favorites.api import router as favorites_router
from noken.messages.api import router as messages_router
from noken.messaging.api import router as messaging_router
from noken.notifications.api import router as notifications_router
from noken.offres.api import router as offres_router
from noken.retours.api import router as retours_router
from noken.upload.api import router as upload_router
from noken.users.api import dashboard_router, router as users_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        await init_models()
        logger.info("✅ Tables de la base de données prêtes")
    yield


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content=error_body(request, 429, f"Trop de requêtes : {exc.detail}", "Too Many Requests"),
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Noken Declic API", docs_url="/api/docs", lifespan=lifespan)

    # Dossier des fichiers envoyés
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_middleware(SlowAPIMiddleware)
    register_exception_handlers(app)

    # Ajout des routers
    app.include_router(auth_router, prefix="/auth")
    app.include_router(users_router)
    app.include_router(dashboard_router)
    app.include_router(offres_router)
    app.include_router(upload_router)
    app.include_router(cv_router)
    app.include_router(commentaires_router)
    app.include_router(retours_router)
    app.include_router(favorites_router)
    app.include_router(messaging_router)
    app.include_router(messages_router)
    app.include_router(notifications_router)
    app.include_router(chatbot_router)
    app.include_router(admin_router)

    # Middleware CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Bienvenue sur l'API Noken Declic !"}

    return app


app = create_app()
