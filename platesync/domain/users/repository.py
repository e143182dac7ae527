"""User repository - Database operations for church staff"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: str, church_id: Optional[str] = None) -> Optional[User]:
        query = db.query(User).filter(User.id == user_id)
        if church_id is not None:
            query = query.filter(User.church_id == church_id)
        return query.first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    @staticmethod
    def get_user_by_reset_token(db: Session, token: str) -> Optional[User]:
        return db.query(User).filter(User.password_reset_token == token).first()

    @staticmethod
    def get_users(db: Session, church_id: str) -> list[User]:
        return (
            db.query(User)
            .filter(User.church_id == church_id)
            .order_by(User.last_name, User.first_name, User.email)
            .all()
        )

    @staticmethod
    def create_user(db: Session, church_id: str, commit: bool = True, **data) -> User:
        user = User(church_id=church_id, **data)
        db.add(user)
        if commit:
            db.commit()
            db.refresh(user)
        else:
            db.flush()
        return user

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()
