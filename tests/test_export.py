"""
Unit tests for ebookforge.services.export: filenames, printable HTML and the
PDF export guard rails. WeasyPrint itself is only exercised when it can load.
"""
import base64
import io
import logging
from unittest.mock import patch

import pytest
from PIL import Image

from ebookforge.errors import ExportNotReadyError, RenderFailureError
from ebookforge.models import Chapter, Ebook
from ebookforge.services import export
from ebookforge.services.export import (
    build_printable_html,
    export_pdf,
    paragraphs,
    render_pdf,
    safe_filename,
    save_pdf,
)
from tests.fakes import FAKE_COVER


def _ebook(cover=FAKE_COVER, chapters=2, title="Meu Livro! 2024"):
    ebook = Ebook(title=title, description="Descrição de venda.\n\nSegundo parágrafo.")
    for i in range(1, chapters + 1):
        ebook.add_chapter(Chapter(title=f"Cap {i}", content="Um.\nDois.\n\n  \nTrês."))
    if cover:
        ebook.set_cover(cover)
    return ebook


class TestSafeFilename:

    @pytest.mark.parametrize("title,expected", [
        ("Meu Livro! 2024", "meu_livro__2024.pdf"),
        ("ABC", "abc.pdf"),
        ("Ação & Reação", "a__o___rea__o.pdf"),
        ("", "ebook.pdf"),
        ("!!! ???", "ebook.pdf"),
        ("çã ", "ebook.pdf"),
    ])
    def test_collapses_non_alphanumerics(self, title, expected):
        assert safe_filename(title) == expected


class TestParagraphs:

    def test_blank_lines_split_paragraphs(self):
        assert paragraphs("Um.\nDois.\n\n  \nTrês.") == [["Um.", "Dois."], ["Três."]]

    def test_windows_newlines_and_edges(self):
        assert paragraphs("\r\n\r\nA\r\n\r\nB\r\n") == [["A"], ["B"]]

    def test_empty(self):
        assert paragraphs("") == []


class TestPrintableHtml:

    def test_pages_in_order(self):
        html = build_printable_html(_ebook())
        cover = html.index('class="page cover-page"')
        desc = html.index("Descrição</h2>")
        ch1 = html.index("Capítulo 1: Cap 1")
        ch2 = html.index("Capítulo 2: Cap 2")
        assert cover < desc < ch1 < ch2
        assert "size: A4 portrait" in html
        assert "width: 794px" in html

    def test_page_breaks(self):
        html = build_printable_html(_ebook(chapters=3))
        # cover and description each fill one fixed A4 box and break after it
        assert ".page{ width: 794px; height: 1122px; page-break-after: always; }" in html
        assert html.count('<section class="page cover-page">') == 1
        assert html.count('<section class="page desc-page">') == 1
        # every chapter starts on a new page
        assert ".chapter{ width: 794px; padding: 60px; page-break-before: always; }" in html
        assert html.count('<section class="chapter">') == 3
        assert "@page { size: A4 portrait; margin: 0; }" in html

    def test_paragraph_breaks(self):
        html = build_printable_html(_ebook(chapters=1))
        assert "<p>Um.<br>Dois.</p>" in html
        assert "<p>Três.</p>" in html

    def test_escapes_generated_text(self):
        ebook = Ebook(title="T", description="<b>x</b>")
        ebook.add_chapter(Chapter(title="<i>c</i>", content="<script>alert(1)</script>"))
        ebook.set_cover(FAKE_COVER)
        html = build_printable_html(ebook)
        assert "<script>alert(1)</script>" not in html
        assert "&lt;i&gt;c&lt;/i&gt;" in html


class TestRenderPdf:

    def test_requires_cover(self):
        with pytest.raises(ExportNotReadyError):
            render_pdf(_ebook(cover=""))

    def test_wraps_layout_errors(self):
        with patch.object(export, "_html_to_pdf", side_effect=OSError("pango missing")):
            with pytest.raises(RenderFailureError) as exc:
                render_pdf(_ebook())
        assert "pango missing" in str(exc.value)

    def test_empty_output_is_failure(self):
        with patch.object(export, "_html_to_pdf", return_value=b""):
            with pytest.raises(RenderFailureError):
                render_pdf(_ebook())


class TestExportPdf:

    def test_success(self):
        with patch.object(export, "_html_to_pdf", return_value=b"%PDF-1.7 fake") as to_pdf:
            exported = export_pdf(_ebook())
        assert exported.filename == "meu_livro__2024.pdf"
        assert exported.content == b"%PDF-1.7 fake"
        assert "Capítulo 1: Cap 1" in to_pdf.call_args.args[0]

    def test_failure_is_logged_not_raised(self, caplog):
        with caplog.at_level(logging.ERROR, logger="ebookforge.services.export"):
            with patch.object(export, "_html_to_pdf", side_effect=RuntimeError("boom")):
                assert export_pdf(_ebook()) is None
        assert "PDF export failed" in caplog.text

    def test_not_ready_gives_none(self):
        assert export_pdf(_ebook(cover="")) is None


class TestSavePdf:

    def test_writes_complete_file(self, tmp_path):
        with patch.object(export, "_html_to_pdf", return_value=b"%PDF-1.7 fake"):
            path = save_pdf(_ebook(), tmp_path / "exports")
        assert path == tmp_path / "exports" / "meu_livro__2024.pdf"
        assert path.read_bytes() == b"%PDF-1.7 fake"
        assert [p.name for p in (tmp_path / "exports").iterdir()] == ["meu_livro__2024.pdf"]

    def test_failure_leaves_no_file(self, tmp_path):
        with patch.object(export, "_html_to_pdf", side_effect=RuntimeError("boom")):
            assert save_pdf(_ebook(), tmp_path) is None
        assert list(tmp_path.iterdir()) == []


def _weasyprint_available():
    try:
        import weasyprint  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


@pytest.mark.skipif(not _weasyprint_available(), reason="WeasyPrint system libraries not available")
def test_real_pdf_is_paginated_a4():
    buf = io.BytesIO()
    Image.new("RGB", (30, 40), (10, 120, 200)).save(buf, format="PNG")
    cover = "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()
    ebook = _ebook(cover=cover, chapters=3)

    from weasyprint import HTML

    pdf = render_pdf(ebook)
    document = HTML(string=build_printable_html(ebook)).render()

    assert pdf.startswith(b"%PDF")
    # cover page, description page, one page per chapter
    assert len(document.pages) == 5
    assert abs(document.pages[0].width - 793.7) < 1
    assert abs(document.pages[0].height - 1122.5) < 1
