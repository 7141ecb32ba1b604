from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import auth, venues, bookings, payments, ratings
from app.core.config import BOOKING_SWEEPER_ENABLED, BOOKING_SWEEP_INTERVAL_SECONDS
from app.db.session import init_database
from app.services.booking_cleanup import BookingCleanupJob

# ⭐ Import logging system
from app.core.logging_config import get_logger

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()

    cleanup_job = BookingCleanupJob(interval_seconds=BOOKING_SWEEP_INTERVAL_SECONDS)
    app.state.cleanup_job = cleanup_job
    if BOOKING_SWEEPER_ENABLED:
        cleanup_job.start()

    yield

    await cleanup_job.stop()


app = FastAPI(
    title="Venue Booking API",
    version="1.0.0",
    description="API for venue bookings, inquiries, payments and ratings",
    lifespan=lifespan,
)


# ⭐ Request Logging Middleware
@app.middleware("http")
async def log_requests(request, call_next):
    logger.info(f"REQUEST: {request.method} {request.url}")

    try:
        response = await call_next(request)
        logger.info(f"RESPONSE: {response.status_code} {request.url}")
        return response

    except Exception as e:
        logger.error(f"ERROR: {request.url} -> {str(e)}")
        raise e


# ⭐ Error bodies are always {"error": "..."}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", []) if part != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ⭐ CORS (important for frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Can restrict later for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------- ROUTERS --------
app.include_router(auth.router)
app.include_router(venues.router)
app.include_router(bookings.router)
app.include_router(payments.router)
app.include_router(ratings.router)


@app.get("/", tags=["Root"])
def root():
    return {"message": "Backend running successfully"}
