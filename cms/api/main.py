from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from util.logging import logger
from .auth import router as auth_router
from .forms import router as forms_router
from .schemas import HealthResponse
from ..core import config
from ..core.dao import get_envelope_count
from ..core.db import health_check, init_db

init_db()

# Initialize the FastAPI application
app = FastAPI(
    title="Content Admin API",
    version=config.VERSION,
    description="Generic per-type content store for the website dashboard",
    docs_url="/docs" if config.debug_enabled() else None,
    redoc_url="/redoc" if config.debug_enabled() else None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for issue in config.validate_config():
    logger.warning(f"Configuration issue: {issue}")


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    db_health = health_check()

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=config.VERSION,
        db_health=db_health,
        envelope_count=get_envelope_count()
    )


app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(forms_router, prefix="/api/form", tags=["forms"])

# Local uploads are served by the API itself
if config.UPLOAD_PROVIDER == "local":
    Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(config.LOCAL_UPLOAD_URL, StaticFiles(directory=config.UPLOAD_DIR), name="uploads")


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    content = {"error": "Internal server error"}
    if config.debug_enabled():
        content["debug"] = str(exc)
    return JSONResponse(
        status_code=500,
        content=content,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    """Report HTTP errors with the same body shape as the form routes."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))
