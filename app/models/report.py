"""Report model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String

from app.database import Base


class Report(Base):
    """Report model - one generated document on disk."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    employee_name = Column(String(255), nullable=False)
    month = Column(String(50), nullable=False)
    year = Column(Integer, nullable=False)
    report_file = Column(String(1024), nullable=False)
    file_name = Column(String(512), nullable=False)
    file_size = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Not unique: superseded records are kept alongside the current one
    __table_args__ = (
        Index("idx_report_employee_month_year", "employee_name", "month", "year"),
    )

    def to_dict(self) -> dict:
        """Wire representation."""
        return {
            "_id": self.id,
            "employeeName": self.employee_name,
            "month": self.month,
            "year": self.year,
            "report_file": self.report_file,
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Report(id={self.id}, employee_name='{self.employee_name}', month='{self.month}', year={self.year})>"
