"""Report generation: render, place on disk, supersede, record."""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from app.core.exceptions import TemplateNotFoundError, ValidationError
from app.core.report_store import ReportStore
from app.core.templating import TemplateRenderer
from app.models.report import Report

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Reserved render fields. Caller data is merged after these and wins on collision.
RESERVED_FIELDS = ("employeeName", "month", "year", "generatedDate")

_WHITESPACE_RUN = re.compile(r"\s+")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def sanitize_employee_name(employee_name: str) -> str:
    """Replace each run of whitespace with a single underscore."""
    return _WHITESPACE_RUN.sub("_", employee_name)


def leading_int(value: Any) -> Optional[int]:
    """Integer at the start of ``value`` (``"2024abc"`` -> 2024), or None."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def parse_year(value: Any, today: Optional[datetime] = None) -> int:
    """Leading-integer parse of ``value``; missing, unparsable or 0 means the current year."""
    fallback = (today or datetime.utcnow()).year
    return leading_int(value) or fallback


def build_render_context(
    employee_name: str,
    month: str,
    year: int,
    generated_date: str,
    data: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Reserved fields act as defaults; keys in ``data`` override them."""
    context: Dict[str, Any] = {
        "employeeName": employee_name,
        "month": month,
        "year": year,
        "generatedDate": generated_date,
    }
    context.update(data or {})
    return context


def ensure_report_folder(upload_dir: str, employee_folder: str, month: str, year: int) -> str:
    """Create ``<upload_dir>/<employee>/<month>_<year>`` if missing and return it."""
    employee_path = os.path.join(upload_dir, employee_folder)
    month_path = os.path.join(employee_path, f"{month}_{year}")

    if not os.path.isdir(employee_path):
        os.makedirs(employee_path, exist_ok=True)
        logger.info(f"Created employee folder: {employee_path}")
    if not os.path.isdir(month_path):
        os.makedirs(month_path, exist_ok=True)
        logger.info(f"Created month folder: {month_path}")

    return month_path


def build_report_filename(employee_folder: str, month: str, year: int, when: datetime) -> str:
    """``<employee>_<month>_<year>_<YYYY-MM-DD>.docx``."""
    stamp = re.sub(r"[:.]", "-", when.date().isoformat())
    return f"{employee_folder}_{month}_{year}_{stamp}.docx"


@dataclass
class GenerationRequest:
    """Input of a single generation call."""

    employee_name: str
    month: str = ""
    year: Any = None  # parsed with parse_year
    generated_date: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GeneratedReport:
    """Rendered bytes plus the record that now describes them."""

    content: bytes
    report: Report
    download_name: str


class ReportGenerator:
    """Runs the generation workflow for one request at a time.

    Supersession removes the previous file for the same (employee, month,
    year) key but keeps its database record, so history can hold several
    records for one key while only the newest has a file.
    """

    def __init__(
        self,
        store: ReportStore,
        renderer: TemplateRenderer,
        template_path: str,
        upload_dir: str,
        clock: Callable[[], datetime] = datetime.utcnow,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.renderer = renderer
        self.template_path = template_path
        self.upload_dir = upload_dir
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def load_template(self) -> bytes:
        if not os.path.isfile(self.template_path):
            raise TemplateNotFoundError(self.template_path)
        with open(self.template_path, "rb") as f:
            return f.read()

    def _validate(self, request: GenerationRequest) -> GenerationRequest:
        employee_name = (request.employee_name or "").strip()
        if not employee_name:
            raise ValidationError("employeeName is required")
        if not request.month:
            raise ValidationError("month is required")
        if request.data is not None and not isinstance(request.data, Mapping):
            raise ValidationError("data must be a JSON object")
        return GenerationRequest(
            employee_name=employee_name,
            month=request.month,
            year=parse_year(request.year, self.clock()),
            generated_date=request.generated_date or "",
            data=dict(request.data or {}),
        )

    def supersede(self, employee_name: str, month: str, year: int) -> Optional[Report]:
        """Delete the file of an existing report for the key; leave its record."""
        existing = self.store.find_by_key(employee_name, month, year)
        if not existing:
            return None

        if existing.report_file and os.path.exists(existing.report_file):
            os.remove(existing.report_file)
            self.logger.info(
                f"Deleted old file: {existing.report_file}",
                extra={"report_id": existing.id, "path": existing.report_file},
            )
        self.logger.info(
            f"Superseded report {existing.id} for {employee_name} {month} {year}; record kept",
            extra={"report_id": existing.id},
        )
        return existing

    def generate_report(self, request: GenerationRequest) -> GeneratedReport:
        """Render the bundled template and store the result."""
        request = self._validate(request)
        template_bytes = self.load_template()

        context = build_render_context(
            request.employee_name,
            request.month,
            request.year,
            request.generated_date,
            request.data,
        )
        content = self.renderer.render(template_bytes, context)

        employee_folder = sanitize_employee_name(request.employee_name)
        folder = ensure_report_folder(self.upload_dir, employee_folder, request.month, request.year)

        self.supersede(request.employee_name, request.month, request.year)

        file_name = build_report_filename(employee_folder, request.month, request.year, self.clock())
        file_path = os.path.join(folder, file_name)

        with open(file_path, "wb") as f:
            f.write(content)
        file_size = os.stat(file_path).st_size

        log_extra = {
            "employee_name": request.employee_name,
            "month": request.month,
            "year": request.year,
            "path": file_path,
        }
        self.logger.info(f"Document saved: {file_path} ({file_size} bytes)", extra=log_extra)

        report = self.store.create(
            employee_name=request.employee_name,
            month=request.month,
            year=request.year,
            report_file=file_path,
            file_name=file_name,
            file_size=file_size,
        )
        self.logger.info(f"Report saved to database: {report.id}", extra={**log_extra, "report_id": report.id})

        return GeneratedReport(
            content=content,
            report=report,
            download_name=f"{employee_folder}_{request.month}_{request.year}_report.docx",
        )
