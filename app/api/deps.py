"""Shared FastAPI dependencies."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import Settings
from app.core.chat_store import ChatStore
from app.core.report_store import ReportStore
from app.core.reporting import ReportGenerator
from app.core.templating import TemplateRenderer
from app.database import get_db


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_renderer(request: Request) -> TemplateRenderer:
    return request.app.state.renderer


def get_report_store(db: Session = Depends(get_db)) -> ReportStore:
    return ReportStore(db)


def get_chat_store(db: Session = Depends(get_db)) -> ChatStore:
    return ChatStore(db)


def get_report_generator(
    store: ReportStore = Depends(get_report_store),
    renderer: TemplateRenderer = Depends(get_renderer),
    settings: Settings = Depends(get_settings),
) -> ReportGenerator:
    return ReportGenerator(
        store=store,
        renderer=renderer,
        template_path=settings.template_path,
        upload_dir=settings.upload_dir,
    )
