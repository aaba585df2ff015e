from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import traceback
import logging
import uvicorn # For running programmatically
import os

from kollector.core.config import settings
from kollector.api import discogs, health, images, kollections, lists, music_releases, now_playing, seed
from kollector.api.lookups import LOOKUP_ROUTERS

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("kollector")
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

ERROR_MESSAGE = "An error occurred while processing your request."

app = FastAPI(title="Kollector Scum API", version="1.0.0")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(request: Request, exc: Exception, status_code: int) -> JSONResponse:
    content = {
        "message": ERROR_MESSAGE,
        "details": str(exc),
        "path": request.url.path
    }
    if settings.DEBUG:
        content["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content)


# Built-in exceptions raised by services map onto HTTP status codes.
# HTTPException subclasses (NotFoundException etc.) keep FastAPI's own handling.

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    logger.info(f"Validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Validation failed",
            "details": "; ".join(e["msg"] for e in errors),
            "errors": errors,
            "path": request.url.path
        }
    )

@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning(f"Bad request on {request.url.path}: {exc}")
    return error_response(request, exc, status.HTTP_400_BAD_REQUEST)

@app.exception_handler(KeyError)
async def key_error_handler(request: Request, exc: KeyError):
    logger.warning(f"Not found on {request.url.path}: {exc}")
    return error_response(request, exc, status.HTTP_404_NOT_FOUND)

@app.exception_handler(PermissionError)
async def permission_error_handler(request: Request, exc: PermissionError):
    logger.warning(f"Unauthorized on {request.url.path}: {exc}")
    return error_response(request, exc, status.HTTP_401_UNAUTHORIZED)

@app.exception_handler(NotImplementedError)
async def not_implemented_handler(request: Request, exc: NotImplementedError):
    logger.warning(f"Not implemented: {request.url.path}")
    return error_response(request, exc, status.HTTP_501_NOT_IMPLEMENTED)

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_detail = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{error_detail}")
    return error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


# Include routes
for lookup_router, tag in LOOKUP_ROUTERS:
    app.include_router(lookup_router, prefix="/api", tags=[tag])
app.include_router(music_releases.router, prefix="/api", tags=["music releases"])
app.include_router(now_playing.router, prefix="/api", tags=["now playing"])
app.include_router(kollections.router, prefix="/api", tags=["kollections"])
app.include_router(lists.router, prefix="/api", tags=["lists"])
app.include_router(discogs.router, prefix="/api", tags=["discogs"])
app.include_router(images.router, prefix="/api", tags=["images"])
app.include_router(seed.router, prefix="/api", tags=["seed"])
app.include_router(health.router, prefix="/api", tags=["health"])


@app.get("/")
async def root():
    return {"message": "Welcome to the Kollector Scum API"}


if __name__ == "__main__":
    # python -m kollector.main from the Backend directory
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("kollector.main:app", host="0.0.0.0", port=port, log_level="info")
