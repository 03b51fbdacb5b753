"""Chat store gateway: "load more" pagination over the chats table."""

import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.report_store import escape_like
from app.models.chat import Chat

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 5


class ChatStore:
    """Search chats oldest-first, skipping records the client already holds."""

    def __init__(self, db: Session, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    def create(self, chat_id: str, name: str, messagesss: str) -> Chat:
        chat = Chat(chat_id=chat_id, name=name, messagesss=messagesss)
        self.db.add(chat)
        self.db.commit()
        self.db.refresh(chat)
        return chat

    def paginate(
        self,
        exclude_ids: Optional[Iterable[int]] = None,
        per_page: int = DEFAULT_PER_PAGE,
        search: str = "",
    ) -> Dict[str, Any]:
        """
        Return the next ``per_page`` chats not in ``exclude_ids``.

        ``totalInDB`` counts the whole table and ignores the filter.
        ``hasMore`` is true whenever a full page came back, so it can be true
        when exactly ``per_page`` matching records were left.
        """
        exclude_ids = list(exclude_ids or [])

        query = self.db.query(Chat)
        if exclude_ids:
            query = query.filter(Chat.id.notin_(exclude_ids))
        if search:
            query = query.filter(Chat.name.ilike(f"%{escape_like(search)}%", escape="\\"))

        total_in_db = self.db.query(func.count(Chat.id)).scalar() or 0
        total_matching = query.count()

        chats = query.order_by(Chat.created_at.asc(), Chat.id.asc()).limit(per_page).all()

        self.logger.debug(
            f"Chat page: {len(chats)} of {total_matching} matching ({len(exclude_ids)} excluded)"
        )
        return {
            "data": chats,
            "totalInDB": total_in_db,
            "totalMatching": total_matching,
            "hasMore": len(chats) == per_page,
        }
