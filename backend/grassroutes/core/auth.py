# backend/grassroutes/core/auth.py
import json
import logging
import threading
from typing import Optional

import firebase_admin
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin.exceptions import FirebaseError
from pydantic import BaseModel

from grassroutes.core.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_init_lock = threading.Lock()

AUTH_ERROR_MESSAGES = {
    "auth/wrong-password": "Incorrect password. Please try again.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/user-not-found": "No account found with this email address.",
    "auth/account-exists-with-different-credential": "An account already exists with this email using a different sign-in method.",
    "auth/email-already-in-use": "An account with this email already exists.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "auth/too-many-requests": "Too many attempts. Please wait a moment and try again.",
    "auth/popup-closed-by-user": "The sign-in window was closed before finishing.",
    "auth/network-request-failed": "Network error. Please check your connection and try again.",
    "auth/id-token-expired": "Your session has expired. Please sign in again.",
    "auth/id-token-revoked": "Your session was revoked. Please sign in again.",
    "auth/user-disabled": "This account has been disabled.",
}
GENERIC_AUTH_ERROR = "Authentication failed. Please try again."


def auth_error_message(code: Optional[str]) -> str:
    """User-facing message for a Firebase Authentication error code."""
    return AUTH_ERROR_MESSAGES.get(code or "", GENERIC_AUTH_ERROR)


class AuthenticatedUser(BaseModel):
    """Identity taken from a verified ID token"""
    uid: str
    email: Optional[str] = None
    email_verified: bool = False


def get_firebase_app() -> Optional[firebase_admin.App]:
    """
    Default Firebase app, initialised on first use.

    Uses the service account JSON in FIREBASE_SERVICE_ACCOUNT_KEY, or else
    FIREBASE_PROJECT_ID. Returns None when neither is configured or the
    credentials are unusable.
    """
    with _init_lock:
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass

        try:
            if settings.FIREBASE_SERVICE_ACCOUNT_KEY:
                service_account = json.loads(settings.FIREBASE_SERVICE_ACCOUNT_KEY)
                return firebase_admin.initialize_app(credentials.Certificate(service_account))
            if settings.FIREBASE_PROJECT_ID:
                return firebase_admin.initialize_app(options={"projectId": settings.FIREBASE_PROJECT_ID})
        except (ValueError, FirebaseError) as e:
            logger.error(f"Failed to initialise Firebase Admin: {e}")
            return None

        logger.warning("Firebase Admin is not configured; ID tokens cannot be verified")
        return None


def verify_id_token(id_token: str) -> AuthenticatedUser:
    """
    Verify a Firebase ID token.

    Raises:
        HTTPException: 503 when verification is not configured, 401 when the
            token is invalid, expired, revoked or belongs to a disabled user
    """
    app = get_firebase_app()
    if app is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service is not configured",
        )
    try:
        decoded = firebase_auth.verify_id_token(id_token, app=app)
    except firebase_auth.ExpiredIdTokenError:
        raise HTTPException(status_code=401, detail=auth_error_message("auth/id-token-expired"))
    except firebase_auth.RevokedIdTokenError:
        raise HTTPException(status_code=401, detail=auth_error_message("auth/id-token-revoked"))
    except firebase_auth.UserDisabledError:
        raise HTTPException(status_code=401, detail=auth_error_message("auth/user-disabled"))
    except (ValueError, FirebaseError) as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return AuthenticatedUser(
        uid=decoded["uid"],
        email=decoded.get("email"),
        email_verified=bool(decoded.get("email_verified", False)),
    )


class FirebaseTokenVerifier:
    """
    FastAPI dependency resolving the bearer token to an AuthenticatedUser.

    With ``required=True`` a missing or invalid token answers 401; otherwise
    the request continues anonymously and the dependency yields None.
    """

    def __init__(self, required: bool = True):
        self.required = required

    def __call__(
        self,
        bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> Optional[AuthenticatedUser]:
        if bearer is None or not bearer.credentials:
            if self.required:
                raise HTTPException(status_code=401, detail="No authentication token provided")
            return None

        try:
            return verify_id_token(bearer.credentials)
        except HTTPException:
            if self.required:
                raise
            return None


require_user = FirebaseTokenVerifier(required=True)
optional_user = FirebaseTokenVerifier(required=False)


def require_email_verification(user: AuthenticatedUser = Depends(require_user)) -> AuthenticatedUser:
    if not user.email_verified:
        raise HTTPException(status_code=403, detail="Email verification required")
    return user
