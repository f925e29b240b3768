import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import models  # noqa: F401 - tables must be registered on Base before create_all
from .database import Base, engine
from .domain.appointments.router import booking_router
from .domain.appointments.router import router as appointments_router
from .domain.owners.router import router as owners_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# HTTP client libraries are chatty at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 VetBook API starting")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Database schema ready")
    except Exception as e:
        # Several uvicorn workers may race to create the same tables
        if "already exists" in str(e) or "duplicate key" in str(e):
            logger.info("ℹ️ Schema already created by another worker")
        else:
            logger.error(f"❌ Schema creation failed: {e}")
            raise

    yield
    logger.info("👋 VetBook API stopped")


app = FastAPI(title="VetBook API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed fields (body, path ids) are client errors: 400"""
    errors = exc.errors()
    logger.warning(f"⚠️ Validation error for {request.url.path}: {errors}")

    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "path"))
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={
            "detail": f"{field}: {message}" if field else message,
            "errors": jsonable_errors(errors),
        },
    )


def jsonable_errors(errors: list) -> list:
    # ctx may carry exception instances that JSONResponse cannot encode
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in errors
    ]


app.include_router(booking_router)
app.include_router(appointments_router)
app.include_router(owners_router)


@app.get("/health")
def health():
    return {"status": "healthy"}
