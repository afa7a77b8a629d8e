"""
Repository Pattern for Database Operations
Provides clean data access layer
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations"""

    def __init__(self, model: Type[T], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: str, for_update: bool = False) -> Optional[T]:
        """Get record by ID, optionally locking the row"""
        query = select(self.model).where(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        result = self.db.execute(query)
        return result.scalar_one_or_none()

    def create(self, **kwargs) -> T:
        """Create new record"""
        instance = self.model(**kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance

    def update(self, instance: T, **kwargs) -> T:
        """Update existing record"""
        for key, value in kwargs.items():
            setattr(instance, key, value)
        self.db.flush()
        return instance

    def delete(self, instance: T) -> None:
        """Delete record"""
        self.db.delete(instance)
        self.db.flush()
