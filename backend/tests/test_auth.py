#!/usr/bin/env python3
"""
Firebase token verification tests

The Firebase app and the token check are patched; no credentials are used.
"""

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from firebase_admin import auth as firebase_auth
from unittest.mock import MagicMock, patch

from grassroutes.core.auth import (
    AuthenticatedUser,
    FirebaseTokenVerifier,
    GENERIC_AUTH_ERROR,
    auth_error_message,
    require_email_verification,
    verify_id_token,
)

DECODED = {"uid": "user-123", "email": "learner@example.com", "email_verified": True}


def bearer(token="token"):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def firebase_app():
    with patch("grassroutes.core.auth.get_firebase_app", return_value=MagicMock()) as app:
        yield app


class TestAuthErrorMessages:
    def test_known_codes(self):
        assert auth_error_message("auth/wrong-password") == "Incorrect password. Please try again."
        assert auth_error_message("auth/id-token-expired") == "Your session has expired. Please sign in again."

    def test_unknown_code_falls_back(self):
        assert auth_error_message("auth/something-new") == GENERIC_AUTH_ERROR
        assert auth_error_message(None) == GENERIC_AUTH_ERROR


class TestVerifyIdToken:
    def test_valid_token(self, firebase_app):
        with patch.object(firebase_auth, "verify_id_token", return_value=DECODED):
            user = verify_id_token("token")
        assert user == AuthenticatedUser(uid="user-123", email="learner@example.com", email_verified=True)

    def test_not_configured(self):
        with patch("grassroutes.core.auth.get_firebase_app", return_value=None):
            with pytest.raises(HTTPException) as exc:
                verify_id_token("token")
        assert exc.value.status_code == 503

    def test_expired_token(self, firebase_app):
        error = firebase_auth.ExpiredIdTokenError("Token expired", None)
        with patch.object(firebase_auth, "verify_id_token", side_effect=error):
            with pytest.raises(HTTPException) as exc:
                verify_id_token("token")
        assert exc.value.status_code == 401
        assert exc.value.detail == auth_error_message("auth/id-token-expired")

    def test_malformed_token(self, firebase_app):
        with patch.object(firebase_auth, "verify_id_token", side_effect=ValueError("bad token")):
            with pytest.raises(HTTPException) as exc:
                verify_id_token("token")
        assert exc.value.status_code == 401
        assert exc.value.detail == "Invalid or expired token"


class TestFirebaseTokenVerifier:
    def test_required_without_token(self):
        with pytest.raises(HTTPException) as exc:
            FirebaseTokenVerifier(required=True)(None)
        assert exc.value.status_code == 401

    def test_optional_without_token(self):
        assert FirebaseTokenVerifier(required=False)(None) is None

    def test_optional_with_bad_token_is_anonymous(self, firebase_app):
        with patch.object(firebase_auth, "verify_id_token", side_effect=ValueError("bad token")):
            assert FirebaseTokenVerifier(required=False)(bearer()) is None

    def test_required_with_good_token(self, firebase_app):
        with patch.object(firebase_auth, "verify_id_token", return_value=DECODED):
            assert FirebaseTokenVerifier(required=True)(bearer()).uid == "user-123"

    def test_bearer_header_end_to_end(self, client, firebase_app):
        with patch.object(firebase_auth, "verify_id_token", return_value=DECODED):
            response = client.get("/api/v1/progress", headers={"Authorization": "Bearer token"})
        assert response.status_code == 200
        assert response.json()["data"]["user_id"] == "user-123"


class TestEmailVerification:
    def test_unverified_email_is_forbidden(self):
        with pytest.raises(HTTPException) as exc:
            require_email_verification(AuthenticatedUser(uid="u", email_verified=False))
        assert exc.value.status_code == 403

    def test_verified_email_passes(self):
        user = AuthenticatedUser(uid="u", email_verified=True)
        assert require_email_verification(user) is user


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
