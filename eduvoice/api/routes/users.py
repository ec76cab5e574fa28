"""User profile routes."""

from fastapi import APIRouter, HTTPException, status

from eduvoice.api.deps import CurrentUser, Store
from eduvoice.schemas.user import UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=UserRead)
async def get_profile(current_user: CurrentUser) -> UserRead:
    """Get the current user's profile."""
    return UserRead.model_validate(current_user)


@router.put("/profile", response_model=UserRead)
async def update_profile(
    data: UserUpdate,
    current_user: CurrentUser,
    storage: Store,
) -> UserRead:
    """Update language and/or plan. Omitted fields are left unchanged."""
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        return UserRead.model_validate(current_user)

    user = await storage.update_user(current_user.id, **update_data)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserRead.model_validate(user)
