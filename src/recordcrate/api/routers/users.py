"""User profile endpoints."""

from fastapi import APIRouter, Depends

from recordcrate.api.dependencies import get_user_service
from recordcrate.api.schemas import UserResponse, UserSyncRequest
from recordcrate.application.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


# Hey future me - the frontend calls /users/sync right after login with
# whatever profile it has. Only name and avatar are touched; stored Spotify
# tokens survive a re-sync.
@router.post("/sync", response_model=UserResponse)
async def sync_user(
    body: UserSyncRequest,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.sync_user(body.spotify_id, body.display_name, body.avatar_url)
    return UserResponse.from_entity(user)


@router.get("/{spotify_id}", response_model=UserResponse)
async def get_user(
    spotify_id: str,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await service.get_user(spotify_id)
    return UserResponse.from_entity(user)
