"""
Test double for the AI capability: deterministic content, records every call,
and can fail at a chosen step ("structure", a 1-based chapter number, or "cover").
"""
from typing import List, Optional, Union

from ebookforge.errors import EmptyResponseError
from ebookforge.models import CHAPTER_COUNT, EbookStructure

FAKE_COVER = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4nGNgYGD4DwABBAEAwS2OUAAAAABJRU5ErkJggg=="

FailAt = Union[str, int, None]


def chapter_titles(n: int = CHAPTER_COUNT) -> List[str]:
    return [f"Capítulo de teste {i}" for i in range(1, n + 1)]


class FakeEbookAI:
    def __init__(
        self,
        title: str = "Meu Livro! 2024",
        fail_at: FailAt = None,
        error: Optional[Exception] = None,
        cover: str = FAKE_COVER,
    ):
        self.title = title
        self.fail_at = fail_at
        self.error = error or EmptyResponseError("Falha ao gerar o conteúdo do capítulo.")
        self.cover = cover
        self.calls: List[tuple] = []

    @property
    def chapter_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == "chapter"]

    async def generate_structure(self, topic: str) -> EbookStructure:
        self.calls.append(("structure", topic))
        if self.fail_at == "structure":
            raise self.error
        return EbookStructure(
            title=self.title,
            description=f"Tudo sobre {topic}.\n\nSegundo parágrafo.",
            chapter_titles=chapter_titles(),
        )

    async def generate_chapter(self, topic: str, ebook_title: str, chapter_title: str) -> str:
        self.calls.append(("chapter", topic, ebook_title, chapter_title))
        if self.fail_at == len(self.chapter_calls):
            raise self.error
        return f"Texto de {chapter_title}.\n\nMais um parágrafo."

    async def generate_cover(self, title: str, topic: str) -> str:
        self.calls.append(("cover", title, topic))
        if self.fail_at == "cover":
            raise self.error
        return self.cover
