import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from questline.core.config import ENABLE_DEBUG_ROUTES, LOG_LEVEL, MEDIA_DIR
from questline.core.errors import QuestlineError
from questline.db.base import Base, SessionLocal, engine

# Import models so create_all picks them up
from questline.auth.models import User  # noqa: F401
from questline.journeys.models import Journey, CheckIn, ReflectionGate  # noqa: F401
from questline.achievements.models import Achievement, UserAchievement  # noqa: F401
from questline.achievements.service import seed_achievements

from questline.auth.routes import router as auth_router
from questline.journeys.routes import router as journey_router
from questline.achievements.routes import router as achievement_router
from questline.uploads.routes import router as upload_router
from questline.web.debug_routes import router as debug_router

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("questline")


app = FastAPI(title="Questline", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Check-in photos
MEDIA_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=str(MEDIA_DIR)), name="media")

# Only expose debug routes (including diagnostics) when explicitly enabled.
if ENABLE_DEBUG_ROUTES:
    app.include_router(debug_router)

# Create database tables (still useful in dev; in production prefer Alembic)
Base.metadata.create_all(bind=engine)

try:
    with SessionLocal() as _db:
        seed_achievements(_db)
except Exception as e:
    print("[DB] achievement seeding failed:", repr(e), flush=True)


@app.exception_handler(QuestlineError)
async def questline_error_handler(request: Request, exc: QuestlineError):
    logger.info("[API] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(auth_router)
app.include_router(journey_router)
app.include_router(achievement_router)
app.include_router(upload_router)


@app.get("/")
def read_root():
    return {"message": "Questline API running"}


@app.get("/health", tags=["infra"])
def health_check():
    return {"status": "ok"}
