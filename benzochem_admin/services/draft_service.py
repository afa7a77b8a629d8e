"""
Draft Quotation Service

Per-user scratch area for quotations that have not been submitted yet.
Drafts are stored in the database and expire after a period without
writes; an expired draft reads as absent.
"""

import logging
import os
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from dotenv import load_dotenv
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from benzochem_admin.db.quotation_drafts_repository import (
    get_quotation_draft_repository,
)
from benzochem_admin.models.quotation_draft_model import QuotationDraft
from benzochem_admin.utils.clock import as_utc, utcnow
from benzochem_admin.utils.exceptions import DraftItemNotFoundError

load_dotenv()
logger = logging.getLogger(__name__)

DRAFT_TTL_DAYS = int(os.getenv("DRAFT_TTL_DAYS", "7"))


class DraftService:
    """Service for draft quotation operations"""

    def __init__(
        self,
        ttl: timedelta = timedelta(days=DRAFT_TTL_DAYS),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = ttl
        self.clock = clock

    def get_draft(
        self, db: Session, user_id: str, create_if_missing: bool = False
    ) -> Optional[QuotationDraft]:
        """Get the user's live draft, optionally starting an empty one"""
        repo = get_quotation_draft_repository(db)
        now = self.clock()
        draft = repo.get_by_user_id(user_id, for_update=create_if_missing)

        if draft and as_utc(draft.expires_at) <= now:
            logger.info(f"Discarding expired draft {draft.id} for user {user_id}")
            repo.delete(draft)
            db.commit()
            draft = None

        if draft or not create_if_missing:
            return draft

        try:
            draft = repo.create(
                user_id=user_id,
                items=[],
                status="draft",
                expires_at=now + self.ttl,
                created_at=now,
                updated_at=now,
            )
            db.commit()
        except IntegrityError:
            # Another request created the user's draft first
            db.rollback()
            logger.info(f"Draft for user {user_id} created concurrently, reusing it")
            draft = repo.get_by_user_id(user_id)
        except Exception:
            db.rollback()
            raise

        return draft

    def add_item(self, db: Session, user_id: str, item: Dict) -> Dict:
        """Append an item to the user's draft, creating the draft if needed"""
        draft = self.get_draft(db, user_id, create_if_missing=True)
        now = self.clock()

        new_item = dict(item)
        product_id = new_item.get("product_id")
        suffix = uuid.uuid4().hex[:8]
        new_item["id"] = f"{product_id}_{suffix}" if product_id else f"item_{suffix}"

        self._save_items(db, draft, list(draft.items or []) + [new_item], now)
        logger.info(f"Added item {new_item['id']} to draft {draft.id}")
        return new_item

    def remove_item(self, db: Session, user_id: str, item_id: str) -> QuotationDraft:
        """
        Remove one item from the user's draft

        Raises:
            DraftItemNotFoundError: If there is no draft or no such item
        """
        draft = self.get_draft(db, user_id)
        if not draft:
            raise DraftItemNotFoundError("No draft quotation found")

        items = list(draft.items or [])
        remaining = [item for item in items if item.get("id") != item_id]
        if len(remaining) == len(items):
            raise DraftItemNotFoundError(f"Item {item_id} not found in draft")

        self._save_items(db, draft, remaining, self.clock())
        return draft

    def update_notes(self, db: Session, user_id: str, notes: Optional[str]) -> QuotationDraft:
        draft = self.get_draft(db, user_id, create_if_missing=True)
        now = self.clock()
        get_quotation_draft_repository(db).update(
            draft, notes=notes, updated_at=now, expires_at=now + self.ttl
        )
        db.commit()
        return draft

    def clear_draft(self, db: Session, user_id: str) -> bool:
        """Delete the user's draft; returns whether one existed"""
        repo = get_quotation_draft_repository(db)
        draft = repo.get_by_user_id(user_id)
        if not draft:
            return False

        repo.delete(draft)
        db.commit()
        return True

    def _save_items(
        self, db: Session, draft: QuotationDraft, items: list, now: datetime
    ) -> None:
        try:
            get_quotation_draft_repository(db).update(
                draft, items=items, updated_at=now, expires_at=now + self.ttl
            )
            db.commit()
        except Exception:
            db.rollback()
            raise


draft_service = DraftService()
