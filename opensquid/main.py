"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from opensquid.core.cache import cache
from opensquid.core.config import settings
from opensquid.core.database import SessionLocal, init_db
from opensquid.core.errors import install_exception_handlers
from opensquid.core.logging import configure_logging
from opensquid.services.teams import seed_admin
from opensquid.services.uploads import ensure_upload_dir
from opensquid.api.auth import router as auth_router
from opensquid.api.admin import router as admin_router
from opensquid.api.users import router as users_router
from opensquid.api.questions import router as questions_router
from opensquid.api.quiz_sessions import router as quiz_sessions_router
from opensquid.api.user_answers import router as user_answers_router
from opensquid.api.prompt_sessions import router as prompt_sessions_router
from opensquid.api.prompt_submissions import router as prompt_submissions_router
from opensquid.api.puzzle_marks import router as puzzle_marks_router
from opensquid.api.leaderboard import router as leaderboard_router
from opensquid.api.uploads import router as uploads_router

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    """
    logger.info(f"Starting {settings.APP_NAME} API ({settings.ENVIRONMENT})...")
    init_db()
    logger.info("Database initialized")
    with SessionLocal() as db:
        admin = seed_admin(
            db, settings.ADMIN_EMAIL,
            settings.ADMIN_PASSWORD.get_secret_value() if settings.ADMIN_PASSWORD else None,
            settings.ADMIN_NAME,
        )
        if admin:
            logger.info(f"Admin account ready: {admin.email}")
    yield
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url=settings.DOCS_URL if not settings.is_production() else None,
    redoc_url=None,
    lifespan=lifespan,
)
app.add_middleware(CORSMiddleware, allow_origins=settings.cors_origins(), allow_credentials=True, allow_methods=["*"], allow_headers=["*"])
install_exception_handlers(app)

api = settings.API_PREFIX
app.include_router(auth_router, prefix=f"{api}/auth", tags=["auth"])
app.include_router(admin_router, prefix=f"{api}/admin", tags=["admin"])
app.include_router(users_router, prefix=f"{api}/users", tags=["users"])
app.include_router(questions_router, prefix=f"{api}/questions", tags=["questions"])
app.include_router(quiz_sessions_router, prefix=f"{api}/quiz-sessions", tags=["quiz"])
app.include_router(user_answers_router, prefix=f"{api}/user-answers", tags=["quiz"])
app.include_router(prompt_sessions_router, prefix=f"{api}/prompt-sessions", tags=["prompt"])
app.include_router(prompt_submissions_router, prefix=f"{api}/prompt-submissions", tags=["prompt"])
app.include_router(puzzle_marks_router, prefix=f"{api}/puzzle-marks", tags=["puzzle"])
app.include_router(leaderboard_router, prefix=f"{api}/leaderboard", tags=["leaderboard"])
app.include_router(uploads_router, prefix=f"{api}/uploads", tags=["uploads"])
app.mount(settings.UPLOAD_URL_PATH, StaticFiles(directory=str(ensure_upload_dir())), name="uploads")


@app.get("/health", tags=["health"])
def health():
    return {
        "status": "ok",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache.ping(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("opensquid.main:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower())
