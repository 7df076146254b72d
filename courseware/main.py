import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from courseware.api.deps import attach_refreshed_token
from courseware.api.routes import admin_courses, auth, courses, users, videos
from courseware.core.config import get_settings
from courseware.core.error_codes import ErrorCode
from courseware.core.errors import ApiError

settings = get_settings()

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s:%(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Access-Token", "X-Token-Refreshed"],
)


def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


@app.middleware("http")
async def sliding_session(request: Request, call_next):
    response = await call_next(request)
    attach_refreshed_token(request, response)
    return response


@app.exception_handler(ApiError)
async def handle_api_error(_, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("Request failed with %s: %s", exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(_, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(status_code=422, content=_error_body(ErrorCode.VALIDATION_ERROR, message))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body(ErrorCode.INTERNAL_ERROR, "Internal server error"))


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(auth.router)
app.include_router(courses.router)
app.include_router(videos.router)
app.include_router(users.router)
app.include_router(admin_courses.router)
