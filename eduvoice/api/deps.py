"""
FastAPI Dependencies for Authentication and Authorization.

Key patterns:
1. get_current_user: asks the configured auth strategy who is calling, returns User object
2. Storage, gateway and auth strategy live on app.state; tests swap them via create_app()
3. No global "current user" state - always pass user explicitly

Security model:
- Session mode: signed HttpOnly cookie pointing at a server-side session
- Token mode: JWT in the Authorization header
- Ownership checks happen in the route handlers; missing and foreign records both 404
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from eduvoice.auth import AuthStrategy
from eduvoice.config import Settings
from eduvoice.db.models import User
from eduvoice.services import ChatService, GatewayClient, GenerationService, VoiceClient
from eduvoice.storage import Storage


# =============================================================================
# APPLICATION STATE
# =============================================================================


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_gateway(request: Request) -> GatewayClient:
    return request.app.state.gateway


def get_auth(request: Request) -> AuthStrategy:
    return request.app.state.auth


def get_voice(request: Request) -> VoiceClient:
    return request.app.state.voice


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[Storage, Depends(get_storage)]
Gateway = Annotated[GatewayClient, Depends(get_gateway)]
Auth = Annotated[AuthStrategy, Depends(get_auth)]
Voice = Annotated[VoiceClient, Depends(get_voice)]


def get_chat_service(gateway: Gateway, settings: AppSettings) -> ChatService:
    return ChatService(gateway, settings)


def get_generation_service(gateway: Gateway, settings: AppSettings) -> GenerationService:
    return GenerationService(gateway, settings)


Chat = Annotated[ChatService, Depends(get_chat_service)]
Generator = Annotated[GenerationService, Depends(get_generation_service)]


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_current_user(request: Request, auth: Auth, storage: Store) -> User:
    """
    Resolve the authenticated user for this request.

    Use it in route handlers:

        @router.get("/materials")
        async def list_materials(user: CurrentUser, storage: Store):
            # user is guaranteed to be authenticated
            ...

    Raises 401 if:
    - No cookie/header was sent
    - The session or token is invalid or expired
    - User no longer exists
    """
    user_id = await auth.authenticate(request)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await storage.get_user(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]


# =============================================================================
# AUTHORIZATION HELPERS
# =============================================================================


def require_role(role: str):
    """
    Dependency factory: the current user must have the given role.

        @router.post("/", dependencies=[Depends(require_role("teacher"))])

    Authenticated users without the role get 403.
    """

    async def check_role(current_user: CurrentUser) -> User:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This action requires the {role} role",
            )
        return current_user

    return check_role


def verify_ownership_or_404(resource: object | None, current_user: User, detail: str = "Resource not found") -> None:
    """
    Combined check: resource exists AND user owns it.

    Returns 404 for both cases (privacy-preserving):

        material = await storage.get_material(material_id)
        verify_ownership_or_404(material, current_user, "Material not found")
        # If we get here, material exists and user owns it
    """
    if resource is None or getattr(resource, "user_id", None) != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
