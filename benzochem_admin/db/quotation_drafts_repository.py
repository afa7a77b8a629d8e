"""
Repository Pattern for Database Operations
Provides clean data access layer
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from benzochem_admin.db.base_repository import BaseRepository
from benzochem_admin.models.quotation_draft_model import QuotationDraft


class QuotationDraftRepository(BaseRepository[QuotationDraft]):
    """Repository for Quotation Draft operations"""

    def get_by_user_id(
        self, user_id: str, for_update: bool = False
    ) -> Optional[QuotationDraft]:
        """Get the draft owned by a user"""
        query = select(QuotationDraft).where(QuotationDraft.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        result = self.db.execute(query)
        return result.scalar_one_or_none()


def get_quotation_draft_repository(db: Session) -> QuotationDraftRepository:
    """Get QuotationDraftRepository instance"""
    return QuotationDraftRepository(QuotationDraft, db)
