# ebookforge/services/ai_client.py
import asyncio, base64, io, logging
from typing import Any, Optional, Protocol, Tuple

import requests
from openai import AsyncOpenAI
from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from ebookforge import config
from ebookforge.errors import EmptyResponseError, MissingCredentialError, NoImageError, ParseError
from ebookforge.models import EbookStructure
from ebookforge.services import prompts

logger = logging.getLogger(__name__)

COVER_ASPECT: Tuple[int, int] = (3, 4)


class EbookAI(Protocol):
    """The three generation calls a run needs. Tests plug in a fake."""

    async def generate_structure(self, topic: str) -> EbookStructure: ...

    async def generate_chapter(self, topic: str, ebook_title: str, chapter_title: str) -> str: ...

    async def generate_cover(self, title: str, topic: str) -> str: ...


# --------- credentials ---------
def resolve_api_key(supplied: Optional[str] = None, allow_supplied: bool = True, allow_env: bool = True) -> str:
    """
    A key typed by the user wins; otherwise fall back to OPENAI_API_KEY.
    Either source can be switched off (the worker only trusts the environment).
    """
    key = (supplied or "").strip() if allow_supplied else ""
    if not key and allow_env:
        key = (config.OPENAI_API_KEY or "").strip()
    if not key:
        raise MissingCredentialError()
    return key


# --------- image helpers ---------
def to_data_uri(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def crop_to_aspect(data: bytes, ratio_w: int = COVER_ASPECT[0], ratio_h: int = COVER_ASPECT[1]) -> bytes:
    """Centre-crop an image to ratio_w:ratio_h and re-encode it as PNG."""
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        w, h = img.size
        if w * ratio_h > h * ratio_w:          # too wide
            new_w = h * ratio_w // ratio_h
            left = (w - new_w) // 2
            img = img.crop((left, 0, left + new_w, h))
        elif w * ratio_h < h * ratio_w:        # too tall
            new_h = w * ratio_h // ratio_w
            top = (h - new_h) // 2
            img = img.crop((0, top, w, top + new_h))
        out = io.BytesIO()
        img.save(out, format="PNG")
        return out.getvalue()


def _image_bytes(datum: Any, timeout: float) -> Optional[bytes]:
    if datum is None:
        return None
    b64 = getattr(datum, "b64_json", None)
    if isinstance(b64, str) and b64.strip():
        return base64.b64decode(b64)
    # some providers answer with a URL instead of inline data
    url = getattr(datum, "url", None)
    if isinstance(url, str) and url.strip():
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
        return r.content
    return None


def _message_text(resp: Any) -> str:
    choices = getattr(resp, "choices", None) or []
    if not choices:
        return ""
    return (choices[0].message.content or "").strip()


# --------- OpenAI-backed client ---------
class OpenAIEbookClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        allow_supplied: Optional[bool] = None,
        allow_env: bool = True,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        cover_size: Optional[str] = None,
    ):
        self._api_key = api_key
        self._allow_supplied = config.ALLOW_USER_API_KEY if allow_supplied is None else allow_supplied
        self._allow_env = allow_env
        self.text_model = text_model or config.OPENAI_TEXT_MODEL
        self.image_model = image_model or config.OPENAI_IMAGE_MODEL
        self.cover_size = cover_size or config.COVER_SIZE
        self._client: Optional[AsyncOpenAI] = None

    def _ai(self) -> AsyncOpenAI:
        # resolved on every call so a missing key fails before any request
        key = resolve_api_key(self._api_key, self._allow_supplied, self._allow_env)
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=key,
                organization=(config.OPENAI_ORG_ID or None),
                base_url=(config.OPENAI_BASE_URL or None),
                timeout=config.REQUEST_TIMEOUT,
            )
        return self._client

    async def generate_structure(self, topic: str) -> EbookStructure:
        ai = self._ai()
        resp = await ai.chat.completions.create(
            model=self.text_model,
            messages=prompts.structure_messages(topic),
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "ebook_structure", "schema": prompts.STRUCTURE_SCHEMA, "strict": True},
            },
        )
        text = _message_text(resp)
        if not text:
            raise EmptyResponseError()
        try:
            return EbookStructure.model_validate_json(text)
        except ValidationError as e:
            logger.error("⚠️ Could not parse e-book structure: %s", e)
            logger.error("⚠️ Payload received: %r", text[:2000])
            raise ParseError() from e

    async def generate_chapter(self, topic: str, ebook_title: str, chapter_title: str) -> str:
        ai = self._ai()
        resp = await ai.chat.completions.create(
            model=self.text_model,
            messages=prompts.chapter_messages(topic, ebook_title, chapter_title),
        )
        text = _message_text(resp)
        if not text:
            raise EmptyResponseError("Falha ao gerar o conteúdo do capítulo.")
        return text

    async def generate_cover(self, title: str, topic: str) -> str:
        ai = self._ai()
        resp = await ai.images.generate(
            model=self.image_model,
            prompt=prompts.cover_prompt(title, topic),
            size=self.cover_size,
            n=1,
        )
        datum = resp.data[0] if getattr(resp, "data", None) else None
        try:
            raw = await asyncio.to_thread(_image_bytes, datum, config.REQUEST_TIMEOUT)
            if not raw:
                raise NoImageError()
            png = await asyncio.to_thread(crop_to_aspect, raw)
        except (requests.RequestException, UnidentifiedImageError, ValueError) as e:
            logger.error("⚠️ Cover image unusable: %s", e)
            raise NoImageError() from e
        return to_data_uri(png, "image/png")
