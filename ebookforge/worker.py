# ebookforge/worker.py
import asyncio, logging

from celery import Celery

from ebookforge import config
from ebookforge.models import RunState
from ebookforge.services.ai_client import OpenAIEbookClient
from ebookforge.services.export import save_pdf
from ebookforge.services.orchestrator import GenerationRun

logger = logging.getLogger(__name__)

celery_app = Celery("ebookforge", broker=config.REDIS_URL, backend=config.REDIS_URL)


@celery_app.task(bind=True, name="ebookforge.generate_ebook")
def generate_ebook(self, payload: dict) -> dict:
    topic = payload["topic"]
    # jobs only ever use the key from the environment
    ai = OpenAIEbookClient(allow_supplied=False, allow_env=True)

    def _progress(state: RunState) -> None:
        self.update_state(state="PROGRESS", meta=state.model_dump(mode="json"))

    final = asyncio.run(GenerationRun(ai, on_update=_progress).run(topic))
    # errored runs are returned as results, not raised
    result = final.model_dump(mode="json")

    if payload.get("export", True) and final.can_export:
        path = save_pdf(final.ebook, config.EXPORT_DIR)
        result["pdf_path"] = str(path) if path else None

    logger.info("📦 Job done topic=%r phase=%s", topic, final.phase.value)
    return result
