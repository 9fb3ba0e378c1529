"""Authentication routes for registration, login, profile and account management."""
from fastapi import APIRouter, Depends, Request, status
from app.schemas import RegisterRequest, LoginRequest, AuthResponse, UserOut, UserUpdate, MessageResponse
from app.services.auth_service import AuthService
from app.api.deps import get_auth_service
from app.db.models.user import User
from app.auth import get_current_user
from app.core.rate_limit import limiter

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(
    request: Request,
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user account.

    Rate limit: 3 requests per minute

    Returns:
        Access token and the new user's summary

    Raises:
        HTTPException: 400 for invalid input or a weak password, 409 if the
        username or email already exists
    """
    return await auth_service.register(payload)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login with username or email (both go in the `username` field).

    Rate limit: 5 requests per minute
    """
    return await auth_service.login(payload)


@router.get("/profile", response_model=UserOut)
async def get_profile(current_user: User = Depends(get_current_user)):
    """Return the identity behind the bearer token."""
    return current_user


@router.put("/update/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    return await auth_service.update_user(user_id, payload, current_user)


@router.delete("/delete/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Delete a user account and the events it owns."""
    return await auth_service.delete_user(user_id, current_user)
