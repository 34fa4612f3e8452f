from typing import Optional
from sqlmodel import Session, select
from app.core.errors import NotResourceOwner, UserNotFound, ValidationError
from app.core.logging import get_logger
from app.core.security import get_password_hash
from app.db.session import begin_write
from app.models.base import utc_now
from app.models.order import Order
from app.models.user import User

logger = get_logger(__name__)

class UserService:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user(self, user_id: int) -> User:
        user = self.get_user_by_id(user_id)
        if not user:
            raise UserNotFound(user_id)
        return user

    def _get_owned_user(self, user_id: int, acting_user_id: int) -> User:
        begin_write(self.session)
        # 404 wins over 401: a missing account is reported even to strangers
        user = self.get_user(user_id)
        if user.id != acting_user_id:
            raise NotResourceOwner()
        return user

    def update_user(self, user_id: int, acting_user_id: int, name: Optional[str] = None,
                    password: Optional[str] = None) -> User:
        user = self._get_owned_user(user_id, acting_user_id)
        if name is None and password is None:
            raise ValidationError("Nothing to update")

        if name is not None:
            user.name = name
        if password is not None:
            user.password_hash = get_password_hash(password)
        user.updated_at = utc_now()

        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info("User %s updated", user.id)
        return user

    def delete_user(self, user_id: int, acting_user_id: int) -> None:
        user = self._get_owned_user(user_id, acting_user_id)

        # Orders reference the user, they go with the account
        orders = self.session.exec(select(Order).where(Order.user_id == user.id)).all()
        for order in orders:
            self.session.delete(order)
        # no relationship tells the flush to drop orders before the user row
        self.session.flush()
        self.session.delete(user)
        self.session.commit()
        logger.info("User %s deleted with %d order(s)", user_id, len(orders))
