"""Firebase Auth provider implementation."""

from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from common.core.config import settings
from common.core.exceptions import AuthenticationError, ConfigurationError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.auth.providers.interface import IdentityProviderInterface
from packages.auth.providers.models import IdentityProviderType, VerifiedIdentity

logger = get_logger(__name__)

_firebase_app: Optional[firebase_admin.App] = None


def _get_firebase_app() -> firebase_admin.App:
    """Get or initialize Firebase Admin app."""
    global _firebase_app
    if _firebase_app is None:
        if not settings.firebase_project_id:
            raise ConfigurationError(
                "Firebase configuration missing: firebase_project_id required"
            )

        # Explicit credentials for local dev; ADC otherwise
        cred = None
        if settings.google_application_credentials:
            cred = credentials.Certificate(settings.google_application_credentials)

        _firebase_app = firebase_admin.initialize_app(
            credential=cred, options={"projectId": settings.firebase_project_id}
        )
        logger.info(
            f"Firebase Admin SDK initialized for project: {settings.firebase_project_id}"
        )
    return _firebase_app


class FirebaseAuthProvider(IdentityProviderInterface):
    """Firebase Auth provider implementation."""

    def __init__(self):
        self.app = _get_firebase_app()

    @trace_span
    async def verify_token(self, token: str) -> VerifiedIdentity:
        """Verify a Firebase ID token locally against Google's public keys."""
        try:
            decoded_token = firebase_auth.verify_id_token(token, app=self.app)
        except firebase_auth.ExpiredIdTokenError as e:
            raise AuthenticationError("Firebase token has expired") from e
        except firebase_auth.RevokedIdTokenError as e:
            raise AuthenticationError("Firebase token has been revoked") from e
        except (firebase_auth.InvalidIdTokenError, ValueError) as e:
            raise AuthenticationError(f"Invalid Firebase token: {str(e)}") from e

        return VerifiedIdentity(
            subject_id=decoded_token["uid"],
            email=decoded_token.get("email"),
            provider=IdentityProviderType.FIREBASE,
        )

    def get_provider_name(self) -> IdentityProviderType:
        return IdentityProviderType.FIREBASE
