# ebookforge/models.py
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, conlist

CHAPTER_COUNT = 10
DATA_URI_PAT = re.compile(r"^data:image/[\w.+-]+;base64,", re.I)


# --------- generated content ---------
class EbookStructure(BaseModel):
    """Planned title, sales copy and ordered chapter titles, produced once per run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    description: str
    chapter_titles: conlist(str, min_length=CHAPTER_COUNT, max_length=CHAPTER_COUNT) = Field(
        alias="chapterTitles"
    )


class Chapter(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content: str


class Ebook(BaseModel):
    """
    The e-book as it is being assembled. Chapters are only appended and the
    cover is set exactly once, at the end of a successful run.
    """

    title: str
    description: str
    cover_image_url: str = ""
    chapters: List[Chapter] = Field(default_factory=list)

    @classmethod
    def from_structure(cls, structure: EbookStructure) -> "Ebook":
        return cls(title=structure.title, description=structure.description)

    @computed_field
    @property
    def can_export(self) -> bool:
        return bool(self.cover_image_url)

    def add_chapter(self, chapter: Chapter) -> None:
        if len(self.chapters) >= CHAPTER_COUNT:
            raise ValueError(f"an e-book holds at most {CHAPTER_COUNT} chapters")
        self.chapters.append(chapter)

    def set_cover(self, url: str) -> None:
        if self.cover_image_url:
            raise ValueError("cover already set")
        if not DATA_URI_PAT.match(url or ""):
            raise ValueError("cover must be a base64 image data URI")
        self.cover_image_url = url


# --------- run state ---------
class Phase(str, Enum):
    IDLE = "idle"
    PLANNING_STRUCTURE = "planning_structure"
    WRITING_CHAPTER = "writing_chapter"
    RENDERING_COVER = "rendering_cover"
    DONE = "done"
    ERRORED = "errored"


WORKING_PHASES = (Phase.PLANNING_STRUCTURE, Phase.WRITING_CHAPTER, Phase.RENDERING_COVER)


class RunState(BaseModel):
    phase: Phase = Phase.IDLE
    chapter_index: Optional[int] = None   # 1-based, only while writing a chapter
    chapter_total: int = CHAPTER_COUNT
    message: str = ""
    error: Optional[str] = None
    ebook: Optional[Ebook] = None

    @computed_field
    @property
    def is_running(self) -> bool:
        return self.phase in WORKING_PHASES

    @computed_field
    @property
    def can_export(self) -> bool:
        return self.ebook is not None and self.ebook.can_export


# --------- API payloads ---------
class GenerateRequest(BaseModel):
    topic: str = ""
    api_key: Optional[str] = None


class JobRequest(BaseModel):
    topic: str = ""


class JobStatus(BaseModel):
    id: str
    state: str
    info: Optional[Dict[str, Any]] = None
