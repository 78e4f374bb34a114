import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from docvault.api.routes.auth import get_current_user
from docvault.core.config import settings
from docvault.core.errors import InternalError, utc_timestamp
from docvault.db.session import get_db
from docvault.models.user import User
from docvault.schemas.user import ProfileRead, ProfileUpdate
from docvault.services.media import MediaStorageClient, MediaStorageError, get_media_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


def _profile(user: User) -> dict:
    return ProfileRead.model_validate(user).model_dump(mode="json")


@router.get("")
def read_profile(current_user: User = Depends(get_current_user)):
    return {
        "success": True,
        "data": _profile(current_user),
        "timestamp": utc_timestamp(),
    }


@router.patch("")
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return {
        "success": True,
        "data": _profile(current_user),
        "message": "Profile updated successfully",
        "timestamp": utc_timestamp(),
    }


@router.post("/avatar")
def upload_avatar(
    avatar: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media: MediaStorageClient = Depends(get_media_client),
):
    if avatar is None:
        raise HTTPException(status_code=400, detail="No file provided")

    if not (avatar.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    data = avatar.file.read()
    if len(data) > settings.AVATAR_MAX_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"File size must be less than {settings.AVATAR_MAX_BYTES // (1024 * 1024)}MB",
        )

    logger.info("Uploading avatar for user %s: %s", current_user.id, avatar.filename)

    if current_user.avatar_public_id:
        try:
            media.delete(current_user.avatar_public_id, "image")
        except MediaStorageError as e:
            logger.warning(
                "Failed to delete old avatar %s: %s", current_user.avatar_public_id, e
            )

    try:
        asset = media.upload_avatar(data, current_user.id, avatar.filename or "avatar")
    except MediaStorageError as e:
        logger.error("Avatar upload error for user %s: %s", current_user.id, e)
        raise InternalError("Failed to upload avatar", details=str(e))

    current_user.avatar = asset.secure_url
    current_user.avatar_public_id = asset.public_id
    db.commit()

    return {
        "success": True,
        "message": "Avatar updated successfully",
        "data": {
            "avatar": current_user.avatar,
            "avatarPublicId": current_user.avatar_public_id,
        },
        "timestamp": utc_timestamp(),
    }
