from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from videotube.core.config import get_settings
from videotube.api.v1.users import router as user_router
from videotube.api.v1.auth import router as auth_router
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from videotube.core.database import dispose_engine
from videotube.core.exceptions import AppException, ErrorKind, ERROR_STATUS
from videotube.core.rate_limit import limiter
from videotube.schemas.common import ErrorResponse
import logging
from slowapi.errors import RateLimitExceeded
from contextlib import asynccontextmanager, suppress
from videotube.tasks.cleanup_uploads import run_periodic_cleanup
import asyncio


settings = get_settings()
logger = logging.getLogger(__name__)

BODY_LIMITED_CONTENT_TYPES = ("application/json", "application/x-www-form-urlencoded")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup code
    logger.info(f"Starting up the {settings.PROJECT_NAME} API...")
    task = asyncio.create_task(
        run_periodic_cleanup(settings.UPLOAD_TEMP_DIR, settings.UPLOAD_TEMP_MAX_AGE_HOURS)
    )
    yield
    # Shutdown code
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task
    await dispose_engine()
    logger.info(f"Shutting down the {settings.PROJECT_NAME} API...")


app = FastAPI(lifespan=lifespan, title=f"{settings.PROJECT_NAME} API", version="1.0.0")

# Body size guard for JSON and urlencoded payloads; multipart uploads are not capped here
@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(BODY_LIMITED_CONTENT_TYPES):
        length = request.headers.get("content-length", "")
        if length.isdigit() and int(length) > settings.MAX_JSON_BODY_BYTES:
            return error_response(413, "Request body too large")
    return await call_next(request)

# CORS setup

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Rate Limiting setup
app.state.limiter = limiter

# Include API routers
app.include_router(user_router, prefix="/api/v1/users", tags=["Users"])
app.include_router(auth_router, prefix="/api/v1/users", tags=["Authentication"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(status=status_code, message=message).model_dump(),
    )

# Global exception handlers
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return error_response(ERROR_STATUS[exc.kind], exc.detail)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    return error_response(429, f"Rate limit exceeded: {exc.detail}")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return error_response(ERROR_STATUS[ErrorKind.VALIDATION], message.removeprefix("Value error, "))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(ERROR_STATUS[ErrorKind.INTERNAL], "Internal server error")

# Logger setup
logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s")



@app.get("/")
def read_root():
    return {"status": "Green", "message": f"The {settings.PROJECT_NAME} Workspace is alive!"}
