"""Seed script for chats."""

import logging
import sys
from typing import Optional

import yaml

from app.config import settings
from app.core.chat_store import ChatStore
from app.database import Database
from app.models.chat import Chat

logger = logging.getLogger(__name__)


def seed_chats(yaml_file: str, database: Optional[Database] = None) -> int:
    """Seed chats from a YAML file; returns the number of chats added.

    Expected layout::

        chats:
          - id: "c-1"
            name: "Onboarding"
            messagesss: "..."
    """
    database = database or Database(settings.database_url)
    with open(yaml_file, "r") as f:
        data = yaml.safe_load(f) or {}

    chats_data = data.get("chats", [])
    if not chats_data:
        logger.warning("No chats found in YAML file")
        return 0

    added = 0
    with database.session() as db:
        store = ChatStore(db)
        for chat_data in chats_data:
            chat_id = str(chat_data["id"])
            existing = db.query(Chat).filter(Chat.chat_id == chat_id).first()
            if existing:
                logger.info(f"Chat {chat_id} already exists, skipping")
                continue

            store.create(
                chat_id=chat_id,
                name=chat_data["name"],
                messagesss=chat_data.get("messagesss", ""),
            )
            added += 1
            logger.info(f"Added chat: {chat_data['name']}")

    logger.info(f"Seeded {added} of {len(chats_data)} chats")
    return added


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m app.seed chats.yaml")
        sys.exit(1)
    logging.basicConfig(level=logging.INFO)
    db_handle = Database(settings.database_url)
    db_handle.create_all()
    seed_chats(sys.argv[1], db_handle)
