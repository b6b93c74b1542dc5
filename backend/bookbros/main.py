from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
from datetime import datetime

from bookbros.core.config import settings
from bookbros.routers import (
    book_of_the_month,
    book_reports,
    comments,
    home,
    journey_comments,
    libraries,
    notification_preferences,
    profiles,
    reading_challenge,
    recommendations,
    top_tens,
    wishlist,
)
from bookbros.database import init_db
from bookbros.utils.instrumentation import log_event_best_effort

# ----------------------------
# Logging
# ----------------------------
logger = logging.getLogger("bookbros")
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

SERVER_BOOT_ID = f"bookbros-backend::{os.getpid()}::{datetime.utcnow().isoformat()}"

app = FastAPI(title="Book Bros API", debug=settings.DEBUG)


# ----------------------------
# CORS
# ----------------------------
cors_origins = settings.cors_origins_list
logger.info("[CORS] allow_origins=%s", cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[UNHANDLED] %s %s", request.method, request.url.path)
    log_event_best_effort("unhandled_exception", properties={"method": request.method, "path": request.url.path, "error": type(exc).__name__})
    
    response = JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"}
    )
    
    # Error responses skip the CORS middleware
    origin = request.headers.get("origin")
    if origin and origin in cors_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
    
    return response


# ----------------------------
# Routers
# ----------------------------
app.include_router(home.router, prefix="/api")
app.include_router(reading_challenge.router, prefix="/api")
app.include_router(libraries.router, prefix="/api")
app.include_router(wishlist.router, prefix="/api")
app.include_router(top_tens.router, prefix="/api")
app.include_router(book_of_the_month.router, prefix="/api")
app.include_router(comments.router, prefix="/api")
app.include_router(journey_comments.router, prefix="/api")
app.include_router(book_reports.router, prefix="/api")
app.include_router(notification_preferences.router, prefix="/api")
app.include_router(profiles.router, prefix="/api")
app.include_router(recommendations.router, prefix="/api")


@app.on_event("startup")
def on_startup() -> None:
    logger.info("[BOOT] %s", SERVER_BOOT_ID)
    init_db()


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/health")
def api_health_check():
    return {"status": "ok"}
