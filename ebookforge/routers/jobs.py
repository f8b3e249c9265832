# ebookforge/routers/jobs.py
import logging

from fastapi import APIRouter, HTTPException

from ebookforge.models import JobRequest, JobStatus
from ebookforge.routers.ebooks import TOPIC_REQUIRED
from ebookforge.worker import celery_app, generate_ebook

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/jobs", response_model=JobStatus, status_code=202, tags=["Jobs"])
def queue_job(req: JobRequest):
    topic = (req.topic or "").strip()
    if not topic:
        raise HTTPException(status_code=400, detail=TOPIC_REQUIRED)
    result = generate_ebook.delay({"topic": topic})
    logger.info("📬 Job queued id=%s topic=%r", result.id, topic)
    return JobStatus(id=result.id, state="PENDING")


@router.get("/jobs/{job_id}", response_model=JobStatus, tags=["Jobs"])
def read_job(job_id: str):
    res = celery_app.AsyncResult(job_id)
    info = res.info
    if isinstance(info, Exception):
        info = {"error": str(info)}
    elif not isinstance(info, dict):
        info = None
    return JobStatus(id=job_id, state=res.state, info=info)
