import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docvault.api.routes import auth, documents, profile
from docvault.core.config import settings
from docvault.core.errors import register_exception_handlers
from docvault.core.logging import configure_logging
from docvault.db.session import engine
from docvault.db.base import Base
import docvault.models  # noqa: F401  # import models so metadata is populated

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# include routers
app.include_router(auth.router)
app.include_router(documents.router)
app.include_router(profile.router)


@app.get("/health")
def health():
    return {"status": "ok"}
