"""Report endpoints: generation, history, download, deletion, template inspection."""

import json
import logging
import os
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse, JSONResponse, Response

from app.api.deps import get_renderer, get_report_generator, get_report_store, get_settings
from app.config import Settings
from app.core.exceptions import (
    NotFoundError,
    TemplateError,
    TemplateNotFoundError,
    ValidationError,
)
from app.core.report_store import ReportStore
from app.core.reporting import DOCX_MEDIA_TYPE, GenerationRequest, ReportGenerator, leading_int
from app.core.templating import TemplateRenderer

logger = logging.getLogger(__name__)

router = APIRouter()


def _content_disposition(filename: str) -> str:
    try:
        filename.encode("latin-1")
    except UnicodeEncodeError:
        return f"attachment; filename*=UTF-8''{quote(filename)}"
    return f"attachment; filename={filename}"


@router.post("/generate-word-from-excel")
def generate_word_from_excel(
    data: Optional[str] = Form(None),
    employee_name: str = Form("", alias="employeeName"),
    month: str = Form(""),
    year: Optional[str] = Form(None),
    generated_date: str = Form("", alias="generatedDate"),
    template: Optional[UploadFile] = File(None),
    generator: ReportGenerator = Depends(get_report_generator),
):
    """Render the bundled template with the posted data and store the document."""
    try:
        if template is not None:
            # Generation always uses the bundled template
            logger.info(f"Ignoring uploaded template: {template.filename}")

        try:
            payload = json.loads(data) if data else {}
        except json.JSONDecodeError as e:
            raise ValidationError(f"data is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ValidationError("data must be a JSON object")

        result = generator.generate_report(
            GenerationRequest(
                employee_name=employee_name,
                month=month,
                year=year,
                generated_date=generated_date,
                data=payload,
            )
        )
        return Response(
            content=result.content,
            media_type=DOCX_MEDIA_TYPE,
            headers={"Content-Disposition": _content_disposition(result.download_name)},
        )
    except TemplateNotFoundError as e:
        logger.error(f"Template missing: {e.path}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "Template file not found",
                "message": f"Please ensure {os.path.basename(e.path)} template exists at {e.path}",
            },
        )
    except TemplateError as e:
        logger.error(f"Template error: {e}")
        for i, detail in enumerate(e.details, start=1):
            logger.error(f"  Error {i}: type={detail['type']} tag={detail['tag']} issue={detail['issue']}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "Template Error",
                "message": "Word template has formatting issues",
                "details": e.details,
            },
        )
    except ValidationError as e:
        logger.warning(f"Invalid generation request: {e}")
        return JSONResponse(status_code=400, content={"error": "Validation Error", "message": str(e)})
    except Exception as e:
        logger.exception("Error generating document")
        return JSONResponse(
            status_code=500,
            content={"error": "Server Error", "message": str(e) or "Failed to generate document"},
        )
    finally:
        if template is not None:
            template.file.close()


@router.get("/reports")
def list_reports(
    employee_name: Optional[str] = Query(None, alias="employeeName"),
    month: Optional[str] = None,
    year: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    store: ReportStore = Depends(get_report_store),
    settings: Settings = Depends(get_settings),
):
    """List report history, newest first.

    ``year`` is read as a leading integer (``2024abc`` filters on 2024); a
    value with no leading digits matches no report.
    """
    year_filter = None
    if year:
        # No stored report has year 0
        year_filter = leading_int(year) or 0
    try:
        result = store.list(
            employee_name=employee_name,
            month=month,
            year=year_filter,
            page=page,
            limit=limit or settings.report_page_size,
        )
        return {
            "success": True,
            "count": len(result.items),
            "total": result.total,
            "page": result.page,
            "totalPages": result.total_pages,
            "reports": [r.to_dict() for r in result.items],
        }
    except Exception as e:
        logger.exception("Error listing reports")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.get("/reports/stats")
def report_statistics(store: ReportStore = Depends(get_report_store)):
    """Aggregate counts over all reports."""
    try:
        return {"success": True, "statistics": store.statistics()}
    except Exception as e:
        logger.exception("Error computing report statistics")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.get("/reports/download/{report_id}")
def download_report(report_id: int, store: ReportStore = Depends(get_report_store)):
    """Stream a stored report file."""
    try:
        report = store.get_by_id(report_id)
        if not os.path.exists(report.report_file):
            raise NotFoundError("File not found on server")
        return FileResponse(report.report_file, media_type=DOCX_MEDIA_TYPE, filename=report.file_name)
    except NotFoundError as e:
        return JSONResponse(status_code=404, content={"success": False, "message": str(e)})
    except Exception as e:
        logger.exception(f"Error downloading report {report_id}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.delete("/reports/{report_id}")
def delete_report(report_id: int, store: ReportStore = Depends(get_report_store)):
    """Delete a report's file and record."""
    try:
        store.delete(report_id)
        return {"success": True, "message": "Report deleted successfully"}
    except NotFoundError as e:
        return JSONResponse(status_code=404, content={"success": False, "message": str(e)})
    except Exception as e:
        logger.exception(f"Error deleting report {report_id}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.post("/inspect-template")
def inspect_template(
    template: Optional[UploadFile] = File(None),
    renderer: TemplateRenderer = Depends(get_renderer),
    settings: Settings = Depends(get_settings),
):
    """List the tags of an uploaded template, or of the bundled one."""
    try:
        if template is not None:
            content = template.file.read()
        else:
            if not os.path.isfile(settings.template_path):
                raise TemplateNotFoundError(settings.template_path)
            with open(settings.template_path, "rb") as f:
                content = f.read()

        result = renderer.inspect(content)
        return {
            "success": True,
            "tags": result.tags,
            "preview": result.preview,
            "tagCount": result.tag_count,
        }
    except TemplateError as e:
        logger.error(f"Inspection error: {e}")
        return JSONResponse(status_code=400, content={"success": False, "error": str(e), "details": e.details})
    except Exception as e:
        logger.exception("Inspection error")
        return JSONResponse(status_code=400, content={"success": False, "error": str(e), "details": []})
    finally:
        # Spooled upload is discarded on success and on failure
        if template is not None:
            template.file.close()
