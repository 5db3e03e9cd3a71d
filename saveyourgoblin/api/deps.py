"""
Shared API dependencies: database, generator and bearer-token auth.

Resources are created on first use so importing the app has no side
effects; tests swap them through ``app.dependency_overrides``.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from saveyourgoblin.config import settings
from saveyourgoblin.db.manager import DatabaseManager
from saveyourgoblin.engine.generator import ContentGenerator
from saveyourgoblin.utils.logger import get_logger

logger = get_logger(__name__)

_db: Optional[DatabaseManager] = None
_generator: Optional[ContentGenerator] = None

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(settings.database_path)
    return _db


def get_generator() -> ContentGenerator:
    global _generator
    if _generator is None:
        _generator = ContentGenerator()
    return _generator


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: DatabaseManager = Depends(get_db),
) -> Dict[str, Any]:
    """
    Resolve the bearer token to a user.

    Raises:
        HTTPException 401: Missing or unknown token
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = db.get_user_by_token(credentials.credentials)
    if user is None:
        logger.warning("Rejected request with unknown token")
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
