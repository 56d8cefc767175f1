from fastapi import APIRouter, Depends

from ..errors import DirectusError
from ..schemas.keyword_schema import LoginCredentials, LoginResponse
from ..services.directus_client import DirectusClient, get_directus_client
from .errors import http_error_for

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log into Directus",
    response_description="Directus access token to send as a Bearer token",
)
def login(
    credentials: LoginCredentials,
    directus: DirectusClient = Depends(get_directus_client),
) -> LoginResponse:
    """Exchange Directus credentials for an access token.

    The token is returned to the caller, never stored server-side.
    """
    try:
        return directus.login(credentials.email, credentials.password)
    except DirectusError as exc:
        raise http_error_for(exc) from exc
