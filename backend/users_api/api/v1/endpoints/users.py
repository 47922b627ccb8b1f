# users_api/api/v1/endpoints/users.py

import asyncio
import logging
import os
import re
import shutil
import tempfile
from typing import Optional
from bson import ObjectId
from fastapi import APIRouter, HTTPException, status, Query, Depends, Request, UploadFile, File

from users_api.api.deps import get_user_service, parse_object_id
from users_api.core.config import settings
from users_api.core.errors import UserConflictError, UserImportError, UserNotFoundError
from users_api.core.request_logging import LoggingRoute
from users_api.models.enums import SortOrder
from users_api.models.pagination import PaginatedResponse
from users_api.models.user import User, UserCreate, UserUpdate, UploadUsersResponse
from users_api.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    route_class=LoggingRoute,
)

# Query parameters consumed by the listing itself; everything else is a filter
PAGINATION_PARAMS = {"limit", "page", "sort", "sortBy"}

CSV_MIMETYPE = re.compile(r"text/csv", re.IGNORECASE)


@router.post(
    "",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
    description="Creates a user record. Returns 422 if the email or phone already exists.",
)
async def create_user(
    user_in: UserCreate,
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.create_user(user_in)
    except UserConflictError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)


@router.get(
    "",
    response_model=PaginatedResponse[User],
    status_code=status.HTTP_200_OK,
    summary="Return a list of users",
    description="Lists users that are not soft-deleted. Any query parameter other than "
                "limit, page, sort and sortBy is applied as an equality filter.",
)
async def get_users(
    request: Request,
    limit: int = Query(10, ge=1, le=1000, description="Max records to return"),
    page: int = Query(1, ge=1, description="1-based page number"),
    sort: SortOrder = Query(SortOrder.ASC, description="Sort direction"),
    sort_by: str = Query("createdAt", alias="sortBy", min_length=1, description="Field to sort by"),
    service: UserService = Depends(get_user_service),
):
    filters = {
        key: value for key, value in request.query_params.items()
        if key not in PAGINATION_PARAMS
    }
    users = await service.get_users(limit, page, sort, sort_by, filters)
    return PaginatedResponse[User](
        data=users,
        limit=limit,
        page=page,
        sort=sort,
        sort_by=sort_by,
    )


@router.patch(
    "/{id}",
    response_model=User,
    status_code=status.HTTP_200_OK,
    summary="Update a single user",
    responses={404: {"description": "User not found"}, 500: {"description": "Internal server error"}},
)
async def patch_user(
    user_in: UserUpdate,
    user_id: ObjectId = Depends(parse_object_id),
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.update_user(user_id, user_in)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


@router.delete(
    "/{id}",
    response_model=User,
    status_code=status.HTTP_200_OK,
    summary="Soft delete a single user",
    responses={404: {"description": "User not found"}, 500: {"description": "Internal server error"}},
)
async def delete_user(
    user_id: ObjectId = Depends(parse_object_id),
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.delete_user(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


def _spool_to_disk(upload_file: UploadFile) -> str:
    with tempfile.NamedTemporaryFile(delete=False, suffix=".csv", dir=settings.UPLOAD_DIR) as tmp:
        shutil.copyfileobj(upload_file.file, tmp)
        return tmp.name


@router.post(
    "/upload",
    response_model=UploadUsersResponse,
    status_code=status.HTTP_200_OK,
    summary="Bulk import users from a CSV file",
    description="Expected headers: firstname, lastname, email, phone, status, provider, birth_date. "
                "Other columns are ignored. Rows the store rejects are counted in failedCount.",
    responses={422: {"description": "Uploaded file is not a CSV file."}},
)
async def upload_users(
    file: Optional[UploadFile] = File(None, description="CSV file (text/csv)"),
    service: UserService = Depends(get_user_service),
):
    # Non-CSV uploads are treated as if no file was sent
    if file is None or not CSV_MIMETYPE.search(file.content_type or ""):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Uploaded file is not a CSV file.",
        )

    logger.info(f"Importing users from uploaded file '{file.filename}'")
    csv_path = await asyncio.to_thread(_spool_to_disk, file)
    try:
        result = await service.import_users_from_csv(csv_path)
    except UserImportError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Bulk import failed")
    finally:
        os.remove(csv_path)

    return UploadUsersResponse(
        success_count=result.success_count,
        failed_count=result.failed_count,
    )
