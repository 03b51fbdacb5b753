"""Word template rendering and inspection.

Templates are ordinary .docx files whose text carries Jinja2 tags
(``{{ employeeName }}``, ``{%p for task in tasks %}`` ...). Rendering is
delegated to docxtpl; this module only fixes the rendering policy and turns
library failures into :class:`TemplateError` with per-tag diagnostics.
"""

import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn
from docxtpl import DocxTemplate
from jinja2 import (
    ChainableUndefined,
    Environment,
    StrictUndefined,
    TemplateSyntaxError,
    UndefinedError,
)
from jinja2 import TemplateError as JinjaTemplateError

from app.core.exceptions import TemplateError

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 500

_EXPRESSION_PATTERN = re.compile(r"\{\{.*?\}\}", re.DOTALL)
_XML_TAG_PATTERN = re.compile(r"<[^>]+>")


def _null_to_empty(value: Any) -> Any:
    return "" if value is None else value


def build_environment(strict: bool = False) -> Environment:
    """Jinja environment used for a single render.

    Forgiving mode renders unknown tags and ``None`` values as empty strings.
    """
    return Environment(
        undefined=StrictUndefined if strict else ChainableUndefined,
        finalize=_null_to_empty,
        autoescape=True,
    )


@dataclass
class TemplateInspection:
    """Result of inspecting a template without rendering it."""

    tags: List[str] = field(default_factory=list)
    preview: str = ""

    @property
    def tag_count(self) -> int:
        return len(self.tags)


def _offending_tag(env: Environment, exc: TemplateSyntaxError) -> Optional[str]:
    """Find the first ``{{ ... }}`` on the error line that fails to parse alone."""
    source = getattr(exc, "source", None)
    if not source or not exc.lineno:
        return None
    lines = source.splitlines()
    if exc.lineno > len(lines):
        return None
    for match in _EXPRESSION_PATTERN.finditer(lines[exc.lineno - 1]):
        fragment = _XML_TAG_PATTERN.sub("", match.group(0))
        try:
            env.parse(fragment)
        except TemplateSyntaxError:
            return fragment
    return None


def _syntax_error(env: Environment, exc: TemplateSyntaxError) -> TemplateError:
    detail = {
        "type": "syntax_error",
        "tag": _offending_tag(env, exc),
        "issue": exc.message or str(exc),
    }
    return TemplateError(f"Template syntax error: {exc.message}", [detail])


def _malformed(exc: Exception) -> TemplateError:
    detail = {"type": "malformed_document", "tag": None, "issue": str(exc)}
    return TemplateError("Template is not a valid Word document", [detail])


class TemplateRenderer:
    """Renders .docx templates against a data bag.

    The renderer keeps no state between calls; ``strict`` only selects the
    default policy for :meth:`render`.
    """

    def __init__(self, strict: bool = False, logger: Optional[logging.Logger] = None):
        self.strict = strict
        self.logger = logger or logging.getLogger(__name__)

    def _load(self, template_bytes: bytes) -> DocxTemplate:
        try:
            # Validate the package up front so every load failure looks the same
            Document(io.BytesIO(template_bytes))
            return DocxTemplate(io.BytesIO(template_bytes))
        except (zipfile.BadZipFile, PackageNotFoundError, KeyError, ValueError) as e:
            raise _malformed(e) from e

    def render(
        self,
        template_bytes: bytes,
        data: Mapping[str, Any],
        strict: Optional[bool] = None,
    ) -> bytes:
        """Render ``template_bytes`` with ``data`` and return the .docx bytes."""
        strict = self.strict if strict is None else strict
        env = build_environment(strict=strict)
        context: Dict[str, Any] = dict(data)

        if strict:
            missing = sorted(set(self.undeclared_tags(template_bytes)) - set(context))
            if missing:
                details = [
                    {"type": "undefined_tag", "tag": tag, "issue": f"'{tag}' is not defined in the data"}
                    for tag in missing
                ]
                raise TemplateError(f"Template references {len(missing)} undefined tag(s)", details)

        tpl = self._load(template_bytes)
        try:
            tpl.render(context, jinja_env=env, autoescape=True)
        except TemplateSyntaxError as e:
            raise _syntax_error(env, e) from e
        except UndefinedError as e:
            raise TemplateError(
                "Template references undefined data",
                [{"type": "undefined_tag", "tag": None, "issue": e.message or str(e)}],
            ) from e
        except JinjaTemplateError as e:
            raise TemplateError(
                "Template could not be rendered",
                [{"type": "render_error", "tag": None, "issue": str(e)}],
            ) from e

        output = io.BytesIO()
        tpl.save(output)
        rendered = output.getvalue()
        self.logger.debug(f"Rendered template: {len(template_bytes)} -> {len(rendered)} bytes")
        return rendered

    def undeclared_tags(self, template_bytes: bytes) -> List[str]:
        """Distinct top-level variable names the template expects, sorted."""
        env = build_environment(strict=True)
        tpl = self._load(template_bytes)
        try:
            tags = tpl.get_undeclared_template_variables(env)
        except TemplateSyntaxError as e:
            raise _syntax_error(env, e) from e
        return sorted(tags)

    def inspect(self, template_bytes: bytes) -> TemplateInspection:
        """List the tags of a template and preview its text. Does not render."""
        tags = self.undeclared_tags(template_bytes)
        document = Document(io.BytesIO(template_bytes))
        text = "".join(node.text or "" for node in document.element.body.iter(qn("w:t")))
        return TemplateInspection(tags=tags, preview=text[:PREVIEW_LENGTH])


def build_starter_template() -> bytes:
    """A minimal task report template using the reserved fields and a task loop."""
    document = Document()
    document.add_heading("Monthly Task Report", level=1)
    document.add_paragraph("Employee: {{employeeName}}")
    document.add_paragraph("Period: {{month}} {{year}}")
    document.add_paragraph("Generated: {{generatedDate}}")
    document.add_paragraph("{%p for task in tasks %}")
    document.add_paragraph("{{task.title}} - {{task.status}}")
    document.add_paragraph("{%p endfor %}")

    output = io.BytesIO()
    document.save(output)
    return output.getvalue()
