"""
Local accounts and friendships using SQLAlchemy.
Construct one AccountStore per process, call init_db() once at startup, and pass it to whoever needs it.
"""
import logging
from typing import Dict, List

from sqlalchemy import ForeignKey, String, create_engine, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

logger = logging.getLogger(__name__)


class AccountError(Exception):
    pass


class MissingFieldsError(AccountError):
    pass


class PolicyNotAcceptedError(AccountError):
    pass


class UsernameTakenError(AccountError):
    pass


class UnknownUserError(AccountError):
    pass


class SelfFriendError(AccountError):
    pass


class AlreadyFriendsError(AccountError):
    pass


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    is_online: Mapped[bool] = mapped_column(default=False, nullable=False)


class Friendship(Base):
    __tablename__ = "friends"

    user1: Mapped[str] = mapped_column(ForeignKey("users.username", ondelete="CASCADE"), primary_key=True)
    user2: Mapped[str] = mapped_column(ForeignKey("users.username", ondelete="CASCADE"), primary_key=True)


def _friendship_filter(a: str, b: str):
    return or_(
        (Friendship.user1 == a) & (Friendship.user2 == b),
        (Friendship.user1 == b) & (Friendship.user2 == a),
    )


class AccountStore:
    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self._engine = create_engine(database_url, echo=echo)
        self._Session = sessionmaker(self._engine, expire_on_commit=False)

    def init_db(self) -> None:
        """Create tables if they do not exist. Call once at process start."""
        Base.metadata.create_all(self._engine)
        logger.info(f"Account tables ready at {self.database_url}")

    def dispose(self) -> None:
        self._engine.dispose()

    # --- accounts ---

    def register(self, email: str, username: str, password: str, accepted_policy: bool = False) -> None:
        """Create an account. The user must have accepted the Data Protection Policy."""
        email, username = (email or "").strip(), (username or "").strip()
        if not email or not username or not password:
            raise MissingFieldsError("All fields are required. Please fill in Email, Username, and Password.")
        if not accepted_policy:
            raise PolicyNotAcceptedError("You must accept the Data Protection Policy in order to use the application.")
        with self._Session() as session:
            if session.get(User, username) is not None:
                raise UsernameTakenError("That username is already taken.")
            session.add(User(username=username, email=email, password_hash=generate_password_hash(password)))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise UsernameTakenError("That username is already taken.")
        logger.info(f"User registered: {username}")

    def authenticate(self, username: str, password: str) -> bool:
        with self._Session() as session:
            row = session.get(User, (username or "").strip())
            if row is None or not password:
                return False
            return check_password_hash(row.password_hash, password)

    def exists(self, username: str) -> bool:
        with self._Session() as session:
            return session.get(User, username) is not None

    def set_online(self, username: str, is_online: bool) -> bool:
        with self._Session() as session:
            row = session.get(User, username)
            if row is None:
                logger.warning(f"Failed to update is_online for unknown user {username}")
                return False
            row.is_online = is_online
            session.commit()
        logger.info(f"Updated is_online = {is_online} for user {username}")
        return True

    def delete_account(self, username: str) -> bool:
        with self._Session() as session:
            row = session.get(User, username)
            if row is None:
                return False
            session.execute(delete(Friendship).where(or_(Friendship.user1 == username, Friendship.user2 == username)))
            session.delete(row)
            session.commit()
        logger.info(f"Account deleted: {username}")
        return True

    # --- friends ---

    def add_friend(self, username: str, friend: str) -> None:
        friend = (friend or "").strip()
        if friend == username:
            raise SelfFriendError("You cannot add yourself as a friend.")
        with self._Session() as session:
            if session.get(User, username) is None:
                raise UnknownUserError(f"User {username} does not exist.")
            if session.get(User, friend) is None:
                raise UnknownUserError(f"User {friend} does not exist.")
            existing = session.scalars(select(Friendship).where(_friendship_filter(username, friend))).first()
            if existing is not None:
                raise AlreadyFriendsError(f"You are already friends with {friend}.")
            session.add(Friendship(user1=username, user2=friend))
            session.commit()
        logger.info(f"{username} added friend {friend}")

    def remove_friend(self, username: str, friend: str) -> bool:
        with self._Session() as session:
            result = session.execute(delete(Friendship).where(_friendship_filter(username, friend)))
            session.commit()
            return result.rowcount > 0

    def list_friends(self, username: str) -> List[Dict]:
        """Friends of username (either side of the friendship), sorted by name, with online status."""
        with self._Session() as session:
            rows = session.scalars(
                select(Friendship).where(or_(Friendship.user1 == username, Friendship.user2 == username))
            ).all()
            names = sorted({r.user2 if r.user1 == username else r.user1 for r in rows})
            friends = []
            for name in names:
                user = session.get(User, name)
                if user is not None:
                    friends.append({"username": user.username, "is_online": bool(user.is_online)})
            return friends
