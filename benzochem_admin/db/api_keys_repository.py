"""
Repository Pattern for Database Operations
Provides clean data access layer
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from benzochem_admin.db.base_repository import BaseRepository
from benzochem_admin.models.api_key_model import APIKey


class APIKeyRepository(BaseRepository[APIKey]):
    """Repository for API Key operations"""

    def get_by_key_hash(
        self, key_hash: str, for_update: bool = False
    ) -> Optional[APIKey]:
        """Get API key by hash"""
        query = select(APIKey).where(APIKey.key_hash == key_hash)
        if for_update:
            query = query.with_for_update()
        result = self.db.execute(query)
        return result.scalar_one_or_none()

    def key_exists(self, key_hash: str, key_id: str) -> bool:
        """Check whether either unique value is already taken"""
        result = self.db.execute(
            select(func.count(APIKey.id)).where(
                or_(APIKey.key_hash == key_hash, APIKey.key_id == key_id)
            )
        )
        return result.scalar() > 0

    def search(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        created_by: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[APIKey]:
        """List keys newest first, filtered by name/key id, status and creator"""
        query = select(APIKey)

        if is_active is not None:
            query = query.where(APIKey.is_active == is_active)

        if created_by:
            query = query.where(APIKey.created_by == created_by)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(APIKey.name).like(pattern),
                    func.lower(APIKey.key_id).like(pattern),
                )
            )

        result = self.db.execute(
            query.order_by(APIKey.created_at.desc()).limit(limit).offset(offset)
        )
        return result.scalars().all()

    def count_all(self) -> int:
        result = self.db.execute(select(func.count(APIKey.id)))
        return result.scalar()

    def count_active(self) -> int:
        result = self.db.execute(
            select(func.count(APIKey.id)).where(APIKey.is_active.is_(True))
        )
        return result.scalar()

    def count_expired(self, now: datetime) -> int:
        result = self.db.execute(
            select(func.count(APIKey.id)).where(
                APIKey.expires_at.is_not(None), APIKey.expires_at < now
            )
        )
        return result.scalar()

    def count_used_since(self, since: datetime) -> int:
        result = self.db.execute(
            select(func.count(APIKey.id)).where(APIKey.last_used_at > since)
        )
        return result.scalar()

    def total_usage(self) -> int:
        result = self.db.execute(select(func.coalesce(func.sum(APIKey.usage_count), 0)))
        return result.scalar()


def get_api_key_repository(db: Session) -> APIKeyRepository:
    """Get APIKeyRepository instance"""
    return APIKeyRepository(APIKey, db)
