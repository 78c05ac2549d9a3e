import logging
from typing import Optional

from sqlalchemy.orm import Session

from walletapi.core.exceptions import AuthenticationError
from walletapi.core.security import decode_access_token
from walletapi.repositories.user_repository import UserRepository
from walletapi.schemas.user import User as UserSchema

logger = logging.getLogger(__name__)


class AuthService:
    """Resolves bearer tokens to accounts"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)

    def get_current_user(self, token: str) -> Optional[UserSchema]:
        payload = decode_access_token(token)
        try:
            user_id = int(payload.sub)
        except ValueError:
            raise AuthenticationError("Malformed token subject")

        user = self.user_repo.get_by_id(user_id)
        if user is None:
            logger.warning(f"Token for unknown user {user_id}")
        return user
