"""
RecipeShelf Backend — Image Route Handlers
===========================================

What:  POST /api/images registers an asset the client already uploaded to the
       image provider, so recipes can reference it as a banner by id.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.database import get_db_session
from recipeshelf.dependencies import get_current_user
from recipeshelf.models.user import User
from recipeshelf.routes.envelope import wrap
from recipeshelf.schemas.common import ErrorResponse
from recipeshelf.schemas.image import ImageCreate
from recipeshelf.services.image_service import image_service

router = APIRouter(prefix="/api/images", tags=["Images"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        401: {"description": "Missing or unknown user", "model": ErrorResponse},
    },
    summary="Register an uploaded image",
)
async def register_image(
    body: ImageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    image = await image_service.register_image(db, body.public_id, body.url, body.type)
    return wrap(image.to_edit_object(), "image")
