"""
Repository Pattern for Database Operations
Provides clean data access layer
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from benzochem_admin.db.base_repository import BaseRepository
from benzochem_admin.models.admin_model import Admin


class AdminRepository(BaseRepository[Admin]):
    """Repository for Admin operations"""

    def get_by_email(self, email: str) -> Optional[Admin]:
        """Get admin by email (case-insensitive)"""
        result = self.db.execute(
            select(Admin).where(func.lower(Admin.email) == email.lower())
        )
        return result.scalar_one_or_none()


def get_admin_repository(db: Session) -> AdminRepository:
    """Get AdminRepository instance"""
    return AdminRepository(Admin, db)
