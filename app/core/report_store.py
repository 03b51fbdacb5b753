"""Report store gateway: queries and deletions over the reports table."""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.report import Report

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
RECENT_REPORTS_LIMIT = 5


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class ReportPage:
    """One page of the report history."""

    items: List[Report] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class ReportStore:
    """Find, list, insert, delete and aggregate Report records."""

    def __init__(self, db: Session, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    def find_by_key(self, employee_name: str, month: str, year: int) -> Optional[Report]:
        """Most recent record for the exact (employee, month, year) key."""
        return (
            self.db.query(Report)
            .filter(
                Report.employee_name == employee_name,
                Report.month == month,
                Report.year == year,
            )
            .order_by(Report.created_at.desc(), Report.id.desc())
            .first()
        )

    def find_all_by_key(self, employee_name: str, month: str, year: int) -> List[Report]:
        return (
            self.db.query(Report)
            .filter(
                Report.employee_name == employee_name,
                Report.month == month,
                Report.year == year,
            )
            .order_by(Report.created_at.asc(), Report.id.asc())
            .all()
        )

    def create(
        self,
        employee_name: str,
        month: str,
        year: int,
        report_file: str,
        file_name: str,
        file_size: Optional[int] = None,
    ) -> Report:
        """Insert a new record and return it with its identity assigned."""
        report = Report(
            employee_name=employee_name.strip(),
            month=month,
            year=year,
            report_file=report_file,
            file_name=file_name,
            file_size=file_size,
        )
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        return report

    def list(
        self,
        employee_name: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ReportPage:
        """
        Filtered, newest-first, offset-paginated listing.

        ``employee_name`` is a case-insensitive substring; ``month`` and ``year``
        match exactly. Pages are 1-indexed.
        """
        query = self.db.query(Report)
        if employee_name:
            query = query.filter(Report.employee_name.ilike(f"%{escape_like(employee_name)}%", escape="\\"))
        if month:
            query = query.filter(Report.month == month)
        if year is not None:
            query = query.filter(Report.year == year)

        total = query.count()
        skip = (page - 1) * limit
        items = (
            query.order_by(Report.created_at.desc(), Report.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return ReportPage(items=items, total=total, page=page, limit=limit)

    def get_by_id(self, report_id: int) -> Report:
        report = self.db.query(Report).filter(Report.id == report_id).first()
        if not report:
            raise NotFoundError("Report not found")
        return report

    def delete(self, report_id: int) -> None:
        """Remove the report's file (if still on disk) and then its record."""
        report = self.get_by_id(report_id)

        if report.report_file and os.path.exists(report.report_file):
            os.remove(report.report_file)
            self.logger.info(f"Deleted file: {report.report_file}", extra={"report_id": report.id})

        self.db.delete(report)
        self.db.commit()
        self.logger.info(f"Deleted report record {report_id}", extra={"report_id": report_id})

    def statistics(self) -> Dict[str, Any]:
        """Totals, the most recent reports and per-employee counts."""
        total_reports = self.db.query(func.count(Report.id)).scalar() or 0
        total_employees = self.db.query(func.count(func.distinct(Report.employee_name))).scalar() or 0

        recent = (
            self.db.query(Report)
            .order_by(Report.created_at.desc(), Report.id.desc())
            .limit(RECENT_REPORTS_LIMIT)
            .all()
        )

        report_count = func.count(Report.id).label("total_reports")
        last_generated = func.max(Report.created_at).label("last_generated")
        grouped = (
            self.db.query(Report.employee_name, report_count, last_generated)
            .group_by(Report.employee_name)
            .order_by(report_count.desc(), Report.employee_name.asc())
            .all()
        )

        return {
            "totalReports": total_reports,
            "totalEmployees": total_employees,
            "recentReports": [
                {
                    "_id": r.id,
                    "employeeName": r.employee_name,
                    "month": r.month,
                    "year": r.year,
                    "createdAt": r.created_at.isoformat() if r.created_at else None,
                }
                for r in recent
            ],
            "employeeStats": [
                {
                    "_id": row.employee_name,
                    "totalReports": row.total_reports,
                    "lastGenerated": row.last_generated.isoformat() if row.last_generated else None,
                }
                for row in grouped
            ],
        }
