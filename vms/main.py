import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError

from vms.api.routes import api_router
from vms.core.config import get_settings
from vms.core.exceptions import register_exception_handlers
from vms.core.logging import setup_logging
from vms.db.base import Base
from vms.db.session import SessionLocal, engine
from vms.middleware.request_context import RequestContextMiddleware
from vms.services.user_service import ensure_super_admin

settings = get_settings()
setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
app.include_router(api_router, prefix=settings.API_V1_PREFIX)
Path(settings.MEDIA_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_DIR), name="media")
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


def _seed_super_admin() -> None:
    db = SessionLocal()
    try:
        ensure_super_admin(db, settings.SUPERADMIN_EMAIL, settings.SUPERADMIN_PASSWORD)
    except IntegrityError:
        # Another worker inserted the same account first.
        db.rollback()
    finally:
        db.close()


@app.on_event("startup")
async def on_startup():
    Base.metadata.create_all(bind=engine)
    _seed_super_admin()
    if not settings.SECURITY_ACCESS_PIN:
        logger.warning("SECURITY_ACCESS_PIN is empty; the security desk cannot open a session")
