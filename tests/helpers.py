"""Helpers for building and reading .docx files in tests."""

import io
import zipfile

from docx import Document


def make_template(*paragraphs: str) -> bytes:
    """Build a .docx with one paragraph per argument."""
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    output = io.BytesIO()
    document.save(output)
    return output.getvalue()


def document_text(content: bytes) -> str:
    """Paragraph text of a rendered .docx, one line per paragraph."""
    document = Document(io.BytesIO(content))
    return "\n".join(p.text for p in document.paragraphs)


def document_xml(content: bytes) -> str:
    """Raw ``word/document.xml`` of a .docx."""
    with zipfile.ZipFile(io.BytesIO(content)) as archive:
        return archive.read("word/document.xml").decode("utf-8")
