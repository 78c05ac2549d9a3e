from datetime import timedelta

import pytest
from jose import jwt

from walletapi.core.exceptions import AuthenticationError
from walletapi.core.security import create_access_token, decode_access_token
from walletapi.services.auth_service import AuthService


class TestTokens:
    def test_roundtrip(self):
        token = create_access_token({"sub": 42, "role": "seller"})

        payload = decode_access_token(token)

        assert payload.sub == "42"
        assert payload.role == "seller"
        assert payload.exp is not None

    def test_expired_token(self):
        token = create_access_token({"sub": 1}, expires_delta=timedelta(seconds=-10))

        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_foreign_signature(self):
        token = jwt.encode({"sub": "1"}, "some-other-secret", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            decode_access_token(token)


class TestAuthService:
    def test_resolves_user(self, db_session, seller):
        user = AuthService(db_session).get_current_user(create_access_token({"sub": seller.id}))

        assert user.id == seller.id
        assert user.is_seller is True

    def test_unknown_user(self, db_session):
        assert AuthService(db_session).get_current_user(create_access_token({"sub": 404})) is None

    def test_non_numeric_subject(self, db_session):
        with pytest.raises(AuthenticationError):
            AuthService(db_session).get_current_user(create_access_token({"sub": "alice"}))
