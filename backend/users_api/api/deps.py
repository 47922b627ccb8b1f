from typing import Optional
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException, Path, Request, status
import logging

from users_api.services.user_service import UserService

logger = logging.getLogger(__name__)


def get_user_service(request: Request) -> UserService:
    """The service built at startup and kept on app.state."""
    service: Optional[UserService] = getattr(request.app.state, "user_service", None)
    if service is None:
        logger.error("User service requested but not initialized (database connection likely failed on startup).")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not available",
        )
    return service


def parse_object_id(id: str = Path(..., description="User id (24-character hex ObjectId)")) -> ObjectId:
    """Rejects malformed ids before any service call."""
    try:
        return ObjectId(id)
    except (InvalidId, TypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid ObjectId",
        )
