# ebookforge/services/export.py
import logging, os, re, tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from jinja2 import Template

from ebookforge.errors import ExportNotReadyError, RenderFailureError
from ebookforge.models import Ebook

logger = logging.getLogger(__name__)

PAGE_W_PX = 794     # A4 at 96 dpi
PAGE_H_PX = 1122    # A4 is 1122.5 px; a taller box would spill onto a blank page

_NON_ALNUM = re.compile(r"[^a-z0-9]", re.I)
_BLANK_LINE = re.compile(r"\n\s*\n")


def safe_filename(title: str) -> str:
    """'Meu Livro! 2024' -> 'meu_livro__2024.pdf'; nothing usable -> 'ebook.pdf'."""
    stem = _NON_ALNUM.sub("_", title or "").lower()
    if not any(c.isalnum() for c in stem):
        stem = "ebook"
    return f"{stem}.pdf"


def paragraphs(text: str) -> List[List[str]]:
    """Blank-line separated blocks become paragraphs; the lines inside a block are kept for <br>."""
    blocks = _BLANK_LINE.split((text or "").replace("\r\n", "\n").strip())
    return [[ln for ln in b.split("\n")] for b in blocks if b.strip()]


# ---------- PRINTABLE TEMPLATE (fixed-width A4 pages) ----------
PRINT_TEMPLATE = Template(r"""
<!doctype html>
<html>
<head>
<meta charset="utf-8">
<style>
  @page { size: A4 portrait; margin: 0; }
  * { box-sizing: border-box; }
  body { margin:0; width: {{ page_w }}px; color:#000; background:#fff; font-family: Georgia, serif; }

  .page{ width: {{ page_w }}px; height: {{ page_h }}px; page-break-after: always; }
  .cover-page{
    display:flex; flex-direction:column; justify-content:center; align-items:center;
    padding: 40px;
  }
  .cover-page img{ max-width: 80%; max-height: 60%; box-shadow: 0 10px 15px -3px rgba(0,0,0,.1); }
  .cover-page h1{ font-size: 2.5rem; text-align:center; margin-top: 40px; line-height:1.2; }

  .desc-page{ height: auto; padding: 60px; }
  .desc-page .text{ font-size: 1rem; line-height: 1.7; white-space: pre-wrap; }

  h2{ font-size: 2rem; margin: 0 0 1.5rem 0; border-bottom: 2px solid #eee; padding-bottom: .5rem; }

  .chapter{ width: {{ page_w }}px; padding: 60px; page-break-before: always; }
  .chapter .text{ font-size: 1rem; line-height: 1.7; text-align: justify; }
  .chapter p{ margin: 0 0 1em 0; text-indent: 1.5em; }
</style>
</head>
<body>
  <section class="page cover-page">
    {% if ebook.cover_image_url %}<img src="{{ ebook.cover_image_url }}">{% endif %}
    <h1>{{ ebook.title }}</h1>
  </section>

  <section class="page desc-page">
    <h2>Descrição</h2>
    <div class="text">{{ ebook.description }}</div>
  </section>

  {% for ch in chapters %}
    <section class="chapter">
      <h2>Capítulo {{ loop.index }}: {{ ch.title }}</h2>
      <div class="text">
        {% for para in ch.paragraphs %}
          <p>{% for line in para %}{{ line }}{% if not loop.last %}<br>{% endif %}{% endfor %}</p>
        {% endfor %}
      </div>
    </section>
  {% endfor %}
</body>
</html>
""", autoescape=True)


def build_printable_html(ebook: Ebook) -> str:
    chapters = [{"title": ch.title, "paragraphs": paragraphs(ch.content)} for ch in ebook.chapters]
    return PRINT_TEMPLATE.render(ebook=ebook, chapters=chapters, page_w=PAGE_W_PX, page_h=PAGE_H_PX)


def _html_to_pdf(html: str) -> bytes:
    from weasyprint import HTML

    document = HTML(string=html).render()
    if not document.pages:
        raise RenderFailureError("Documento para impressão não encontrado.")
    return document.write_pdf()


def render_pdf(ebook: Ebook) -> bytes:
    if not ebook.can_export:
        raise ExportNotReadyError()
    html = build_printable_html(ebook)
    try:
        pdf = _html_to_pdf(html)
    except RenderFailureError:
        raise
    except Exception as e:
        raise RenderFailureError(f"Falha ao gerar o PDF: {e}") from e
    if not pdf:
        raise RenderFailureError()
    return pdf


@dataclass(frozen=True)
class ExportedPdf:
    filename: str
    content: bytes


def export_pdf(ebook: Ebook) -> Optional[ExportedPdf]:
    """One-shot export. Failures are logged and give None; nothing partial is returned."""
    try:
        pdf = render_pdf(ebook)
    except Exception:
        logger.exception("⚠️ PDF export failed for %r", ebook.title)
        return None
    filename = safe_filename(ebook.title)
    logger.info("🖨️ PDF exported %s (%d bytes, %d chapters)", filename, len(pdf), len(ebook.chapters))
    return ExportedPdf(filename=filename, content=pdf)


def save_pdf(ebook: Ebook, directory: Path) -> Optional[Path]:
    """Write the export into directory; the target only appears once the PDF is complete."""
    exported = export_pdf(ebook)
    if exported is None:
        return None
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / exported.filename
    fd, tmp = tempfile.mkstemp(prefix="_tmp_", suffix=".pdf", dir=str(directory))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(exported.content)
        os.replace(tmp, target)
    except OSError:
        logger.exception("⚠️ Could not write %s", target)
        if os.path.exists(tmp):
            os.remove(tmp)
        return None
    return target
