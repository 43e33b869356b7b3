# backend/app/repositories/user_repository.py
import logging
from typing import Dict, Iterable

from sqlalchemy.orm import Session

from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        """Map user id -> display name for the given ids."""
        ids = list(set(user_ids))
        if not ids:
            return {}
        query = self.db.query(User.id, User.name).filter(User.id.in_(ids))
        return {user_id: name for user_id, name in self._execute_query(query)}
