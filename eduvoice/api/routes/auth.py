"""
Authentication Routes

Endpoints:
- POST /register - Create an account and log it in
- POST /login - Username/password login
- POST /logout - End the session
- GET /user - Get current user

Auth Flow:
1. Client POSTs credentials
2. Backend verifies the scrypt password hash
3. The configured auth strategy issues credentials:
   session mode sets a signed HttpOnly cookie, token mode returns a JWT
4. Later requests are resolved by api.deps.get_current_user

Security:
- Wrong username and wrong password return the same 401 message
- Password hashes never leave the server (UserRead has no hash field)
"""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from eduvoice.api.deps import Auth, CurrentUser, Store
from eduvoice.auth import IssuedCredentials
from eduvoice.db.models import User
from eduvoice.schemas.auth import AuthResponse, LoginRequest
from eduvoice.schemas.user import UserCreate, UserRead
from eduvoice.security import hash_password, verify_password
from eduvoice.storage import DuplicateUserError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _auth_response(user: User, credentials: IssuedCredentials) -> AuthResponse:
    return AuthResponse(
        user=UserRead.model_validate(user),
        access_token=credentials.access_token,
        expires_in=credentials.expires_in,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: UserCreate,
    response: Response,
    storage: Store,
    auth: Auth,
) -> AuthResponse:
    """
    Create a new account and log it in.

    Username and email must both be unused; otherwise 400.
    """
    if await storage.get_user_by_username(request.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists",
        )

    email = request.email.lower()
    if await storage.get_user_by_email(email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    # scrypt is CPU and memory bound; keep it off the event loop
    password_hash = await asyncio.to_thread(hash_password, request.password)
    try:
        user = await storage.create_user(
            username=request.username,
            email=email,
            password_hash=password_hash,
            role=request.role,
            plan=request.plan,
            language=request.language,
        )
    except DuplicateUserError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email already registered",
        )
    logger.info("Registered user %s (%s)", user.id, user.role)

    credentials = await auth.login(user, response)
    return _auth_response(user, credentials)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    storage: Store,
    auth: Auth,
) -> AuthResponse:
    """Verify username/password and issue credentials."""
    user = await storage.get_user_by_username(request.username)
    if user is None or not await asyncio.to_thread(verify_password, request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    credentials = await auth.login(user, response)
    return _auth_response(user, credentials)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: Request, auth: Auth) -> Response:
    """
    Log out the current user.

    Session mode deletes the session and its cookie. Token mode has nothing
    to revoke; clients should discard the token.
    """
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    await auth.logout(request, response)
    return response


@router.get("/user", response_model=UserRead)
async def get_user(current_user: CurrentUser) -> UserRead:
    """Get the current authenticated user."""
    return UserRead.model_validate(current_user)
