from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status, Header

from common.core.config import settings
from common.core.exceptions import AuthenticationError, ProviderUnavailableError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.auth.providers.factory import get_identity_provider
from packages.auth.providers.interface import IdentityProviderInterface

logger = get_logger(__name__)


def get_configured_identity_provider() -> IdentityProviderInterface:
    """Get the identity provider selected in settings."""
    return get_identity_provider(settings.identity_provider)


@trace_span
async def get_current_user(
    authorization: Annotated[Optional[str], Header()] = None,
    identity_provider: IdentityProviderInterface = Depends(
        get_configured_identity_provider
    ),
) -> AuthenticatedUser:
    """Get current authenticated user from the bearer token."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        identity = await identity_provider.verify_token(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ProviderUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Identity provider unavailable: {e}",
        )

    return AuthenticatedUser(account_id=identity.subject_id, email=identity.email)


@trace_span
async def get_current_active_user(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Get current active user."""
    logger.info(f"Authenticated account_id={current_user.account_id}")
    return current_user
