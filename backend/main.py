from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from database import engine, Base
import models  # noqa: F401  (registers tables on Base.metadata)
from errors import register_error_handlers
from auth.routes import router as auth_router
from projects.routes import router as projects_router
from tasks.routes import router as tasks_router

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Project Tracker API",
    description="Projects, members, and assignable tasks",
    version="1.0.0"
)

# CORS: comma separated CORS_ORIGINS, default allow all
cors_origins = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials="*" not in cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(tasks_router)


@app.on_event("startup")
def create_tables():
    """Create any missing tables on the configured database."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database ready ({engine.url.get_backend_name()})")


@app.get("/health")
def health_check():
    return {"status": "ok"}
