"""Chat endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.api.deps import get_chat_store, get_settings
from app.config import Settings
from app.core.chat_store import ChatStore

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatPaginateRequest(BaseModel):
    """Chat pagination request schema."""

    excludeIds: List[int] = []
    per_page: Optional[int] = Field(default=None, ge=1)
    search: str = ""


@router.post("/paginate")
def paginate_chats(
    body: ChatPaginateRequest,
    store: ChatStore = Depends(get_chat_store),
    settings: Settings = Depends(get_settings),
):
    """Next page of chats, oldest first, skipping already loaded ids."""
    try:
        result = store.paginate(
            exclude_ids=body.excludeIds,
            per_page=body.per_page or settings.chat_page_size,
            search=body.search,
        )
        result["data"] = [c.to_dict() for c in result["data"]]
        return result
    except Exception as e:
        logger.exception("Error fetching chat list")
        return JSONResponse(status_code=500, content={"message": "Server Error", "error": str(e)})
