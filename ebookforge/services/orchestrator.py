# ebookforge/services/orchestrator.py
"""
Drives one generation run: structure, then the chapters one by one, then the
cover. Each step publishes a snapshot so the page can render partial results.

    idle -> planning_structure -> writing_chapter(1..10) -> rendering_cover -> done
                      \________________ errored ________________/
"""
import logging
from typing import Callable, Optional

from ebookforge.models import Chapter, Ebook, Phase, RunState
from ebookforge.services.ai_client import EbookAI

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Falha na geração do e-book: "

MSG_PLANNING = "Planejando a estrutura do seu e-book..."
MSG_COVER    = "Criando uma capa incrível..."
MSG_DONE     = "Seu e-book está pronto!"


def chapter_message(index: int, total: int, title: str) -> str:
    return f'Escrevendo Capítulo {index} de {total}: "{title}"'


class RunCancelled(Exception):
    pass


class GenerationRun:
    def __init__(self, ai: EbookAI, on_update: Optional[Callable[[RunState], None]] = None):
        self.ai = ai
        self.on_update = on_update
        self.state = RunState()
        self.cancelled = False
        self._started = False

    def cancel(self) -> None:
        """Stop at the next step boundary; the call in flight finishes but its result is dropped."""
        self.cancelled = True

    def _check(self) -> None:
        if self.cancelled:
            raise RunCancelled()

    # ---------- transitions ----------
    def _publish(self) -> None:
        if self.on_update is not None and not self.cancelled:
            self.on_update(self.state.model_copy(deep=True))

    def _enter(self, phase: Phase, message: str, chapter_index: Optional[int] = None) -> None:
        self.state.phase = phase
        self.state.message = message
        self.state.chapter_index = chapter_index
        self._publish()

    def _fail(self, err: Exception) -> None:
        self.state.phase = Phase.ERRORED
        self.state.chapter_index = None
        self.state.message = ""
        self.state.error = f"{ERROR_PREFIX}{err}"
        self._publish()

    # ---------- run ----------
    async def run(self, topic: str) -> RunState:
        if self._started:
            raise RuntimeError("a GenerationRun can only be run once")
        self._started = True
        topic = topic.strip()

        try:
            self._enter(Phase.PLANNING_STRUCTURE, MSG_PLANNING)
            structure = await self.ai.generate_structure(topic)
            self._check()

            ebook = Ebook.from_structure(structure)
            self.state.ebook = ebook
            self.state.chapter_total = len(structure.chapter_titles)

            total = len(structure.chapter_titles)
            for i, chapter_title in enumerate(structure.chapter_titles, start=1):
                self._enter(Phase.WRITING_CHAPTER, chapter_message(i, total, chapter_title), chapter_index=i)
                content = await self.ai.generate_chapter(topic, structure.title, chapter_title)
                self._check()
                ebook.add_chapter(Chapter(title=chapter_title, content=content))
                self._publish()

            self._enter(Phase.RENDERING_COVER, MSG_COVER)
            cover = await self.ai.generate_cover(structure.title, topic)
            self._check()
            ebook.set_cover(cover)

            self._enter(Phase.DONE, MSG_DONE)
            logger.info("📘 E-book ready title=%r chapters=%d", ebook.title, len(ebook.chapters))
        except RunCancelled:
            logger.info("🛑 Generation cancelled during %s", self.state.phase.value)
        except Exception as e:
            logger.exception("⚠️ E-book generation failed during %s", self.state.phase.value)
            self._fail(e)

        return self.state.model_copy(deep=True)
