"""Authentication endpoints."""

from fastapi import APIRouter, status

from app.dependencies import AuthServiceDep
from app.schemas.auth import LoginRequest, Token

router = APIRouter()


@router.post(
    "/login",
    response_model=Token,
    status_code=status.HTTP_200_OK,
    summary="Operator login",
)
async def login(request: LoginRequest, service: AuthServiceDep) -> Token:
    """
    Exchange operator credentials for a bearer token.

    Args:
        request: Username and password
        service: Auth service

    Returns:
        Access token
    """
    return service.login(request.username, request.password)
