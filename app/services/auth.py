from datetime import timedelta
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.core.config import Settings, settings as default_settings
from app.core.errors import DuplicateEmail, InternalError, InvalidCredentials, ValidationError
from app.core.logging import get_logger
from app.core.security import create_access_token, get_password_hash, verify_password
from app.db.session import begin_write
from app.models.user import User

logger = get_logger(__name__)

class AuthService:
    def __init__(self, session: Session, settings: Settings = default_settings):
        self.session = session
        self.settings = settings

    def get_user_by_email(self, email: str) -> Optional[User]:
        # Emails are stored lowercased
        return self.session.exec(select(User).where(User.email == email.strip().lower())).first()

    def register_user(self, name: str, email: str, password: str) -> User:
        if not name or not email or not password:
            raise ValidationError("Name, email and password are required")

        email = email.strip().lower()
        begin_write(self.session)
        if self.get_user_by_email(email):
            raise DuplicateEmail(email)

        user = User(name=name, email=email, password_hash=get_password_hash(password))
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError as e:
            # lost a race against another registration with the same email
            self.session.rollback()
            raise DuplicateEmail(email) from e
        except Exception as e:
            self.session.rollback()
            logger.exception("Failed to register %s", email)
            raise InternalError() from e

        self.session.refresh(user)
        logger.info("User %s registered", user.id)
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email.strip())
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Failed login for %s", email)
            raise InvalidCredentials()
        return user

    def login(self, email: str, password: str) -> str:
        user = self.authenticate_user(email, password)
        return self.create_token_for(user)

    def create_token_for(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        return create_access_token(
            data={"sub": str(user.id)},
            expires_delta=expires_delta,
            settings=self.settings,
        )
