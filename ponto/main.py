import logging
import subprocess
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ponto.api.admin import router as admin_router
from ponto.api.auth import router as auth_router
from ponto.api.punches import router as punches_router
from ponto.api.users import router as users_router
from ponto.core.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run Alembic migrations on startup."""
    logger.info("Running Alembic migrations...")
    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            capture_output=True,
            text=True,
            cwd=settings.ALEMBIC_CWD,
        )
        if result.returncode != 0:
            logger.error("Alembic migration failed:\n%s", result.stderr)
        else:
            logger.info("Migrations applied successfully:\n%s", result.stdout)
    except Exception as exc:
        logger.exception("Failed to run migrations: %s", exc)

    yield

    logger.info("Shutting down %s backend.", settings.APP_NAME)


app = FastAPI(
    title="Ponto API",
    description="Registro de ponto de funcionários com relatórios mensais em CSV e PDF.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(punches_router, prefix="/api/punches", tags=["Punches"])
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("ponto.main:app", host=settings.HOST, port=settings.PORT)
