# ebookforge/main.py
import logging, time
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from ebookforge import config

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=config.SERVICE_NAME,
    version=config.APP_VERSION,
    description="Generate ten-chapter e-books with a cover and export them as PDF.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

# ---------- Static (frontend) ----------
frontend_dir = Path(__file__).resolve().parent / "frontend"
if not frontend_dir.exists():
    logger.warning("⚠️ frontend dir not found at %s", frontend_dir)
else:
    app.mount("/static", StaticFiles(directory=str(frontend_dir), html=True), name="static")


# ---------- Simple health/root ----------
@app.get("/", tags=["Root"])
def root():
    return {"service": config.SERVICE_NAME, "docs": "/docs", "health": "/health", "ui": "/ui"}


@app.get("/health", tags=["Root"])
def health():
    return {"ok": True, "ts": int(time.time())}


# ---------- UI ----------
@app.get("/ui", tags=["Root"])
def ui():
    return FileResponse(str(frontend_dir / "index.html"))


# ---------- Feature routers ----------
from ebookforge.routers.ebooks import router as ebooks_router  # noqa: E402
from ebookforge.routers.jobs import router as jobs_router  # noqa: E402

app.include_router(ebooks_router)
app.include_router(jobs_router)


# ---------- Route log on startup ----------
@app.on_event("startup")
def _log_routes():
    paths = sorted({getattr(r, "path", "") for r in app.routes if getattr(r, "path", "")})
    logger.info("📚 Registered routes:")
    for p in paths:
        logger.info("  • %s", p)
