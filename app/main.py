from fastapi import FastAPI, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.database import session_manager, aget_db
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import router as auth_router
from app.api.v1.endpoints.colleges import router as colleges_router
from app.api.v1.endpoints.uploads import router as uploads_router
from app.api.v1.endpoints.analytics import router as analytics_router
from app.api.v1.endpoints.events import router as events_router
from app.api.v1.endpoints.feedback import router as feedback_router
from app.api.v1.endpoints.invitations import router as invitations_router
from app.api.v1.endpoints.registrations import router as registrations_router
from app.api.v1.endpoints.waiting_list import router as waiting_list_router
from app.api.v1.endpoints.users import router as users_router

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
import logging
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.limiter import limiter

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""

    try:
        logger.info("🚀 Starting EventPulse application...")

        logger.info("🔌 Initializing database connection pool...")
        await session_manager.init()
        logger.info("✅ Database connection pool ready")

    except Exception as e:
        logger.critical(f"🔥 Application startup failed: {str(e)}")
        raise

    try:
        logger.info("🏁 EventPulse application startup complete")
        yield
    finally:
        try:
            logger.info("🔌 Closing database connections...")
            await session_manager.close()
            logger.info("✅ Database connections closed cleanly")
        except Exception as e:
            logger.error(f"⚠️ Error during shutdown: {str(e)}")
            raise
        finally:
            logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="EventPulse API",
    description="API for EventPulse - events, registrations, live feedback, uploads and analytics",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    logger.info(f"Origin: {request.headers.get('origin')}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Auth failures carry a structured body (error, details, code)
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logging.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"error": "Validation failed", "detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError):
    # ctx may hold exception instances
    return jsonable_encoder([{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()])


@app.get("/", tags=["Health Check"])
async def health_check(db: AsyncSession = Depends(aget_db)):
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "service": "EventPulse API",
            "database": "connected",
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "service": "EventPulse API",
            "database": "disconnected",
            "error": str(e)
        }


app.include_router(auth_router, prefix=settings.API_PREFIX, tags=["Authentication"])
app.include_router(colleges_router, prefix=settings.API_PREFIX, tags=["Colleges"])
app.include_router(uploads_router, prefix=settings.API_PREFIX, tags=["Uploads"])
app.include_router(analytics_router, prefix=settings.API_PREFIX, tags=["Analytics"])
app.include_router(events_router, prefix=settings.API_PREFIX, tags=["Events"])
app.include_router(feedback_router, prefix=settings.API_PREFIX, tags=["Feedback"])
app.include_router(invitations_router, prefix=settings.API_PREFIX, tags=["Invitations"])
app.include_router(registrations_router, prefix=settings.API_PREFIX, tags=["Registrations"])
app.include_router(waiting_list_router, prefix=settings.API_PREFIX, tags=["Waiting List"])
app.include_router(users_router, prefix=settings.API_PREFIX, tags=["Users"])

logger.info(f"✅ Loaded {len(app.routes)} routes")
