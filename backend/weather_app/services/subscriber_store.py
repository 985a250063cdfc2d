# weather_app/services/subscriber_store.py
"""
Persistence for users, subscriptions and their one-time tokens.

Responsibilities:
- Point lookups (user by email/id, token by value)
- Atomic multi-record writes (signup, confirmation, unsubscription)
- The paginated read projection consumed by the weather update dispatcher

All writes go through `_transaction()`, which commits on success and rolls back on
any exception. Database failures are re-raised as StoreError / DuplicateRecordError
with the SQLAlchemy error chained.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from weather_app.models.subscription import Subscription
from weather_app.models.token import Token, TokenType
from weather_app.models.user import User

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the database fails for reasons other than a missing record."""


class DuplicateRecordError(StoreError):
    """Raised when a write violates a uniqueness constraint."""


class RecordNotFoundError(StoreError):
    """Raised when a write targets a row that no longer exists."""


@dataclass(frozen=True)
class UserEmailInfo:
    email: str
    city: str
    token_value: str


@dataclass
class CreatedSubscription:
    user: User
    subscription: Subscription
    tokens: dict[str, Token] = field(default_factory=dict)


class SubscriberStoreProtocol(Protocol):
    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def get_token(self, value: str) -> Optional[Token]:
        ...

    def create_user_with_subscription_and_tokens(
        self,
        email: str,
        city: str,
        frequency: str,
        token_types: Iterable[str],
        generate_token: Callable[[], str],
    ) -> CreatedSubscription:
        ...

    def confirm_user_and_delete_token(self, user_id: uuid.UUID, token_id: uuid.UUID) -> None:
        ...

    def delete_user_with_tokens_and_subscription(self, user_id: uuid.UUID) -> None:
        ...

    def get_user_email_info_batch(self, limit: int, offset: int, frequency: str) -> list[UserEmailInfo]:
        ...


class SubscriberStore:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------
    # Transactions
    # -------------------------
    @contextmanager
    def _transaction(self, what: str) -> Iterator[Session]:
        try:
            yield self.db
            self.db.flush()
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateRecordError(f"{what}: duplicate record") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"{what}: database error") from exc
        except Exception:
            self.db.rollback()
            raise

    # -------------------------
    # Lookups
    # -------------------------
    def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.email == email).first()
        except SQLAlchemyError as exc:
            raise StoreError("error getting user") from exc

    def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StoreError("error getting user") from exc

    def get_token(self, value: str) -> Optional[Token]:
        try:
            return self.db.query(Token).filter(Token.value == value).first()
        except SQLAlchemyError as exc:
            raise StoreError("error getting token") from exc

    # -------------------------
    # Writes
    # -------------------------
    def create_user_with_subscription_and_tokens(
        self,
        email: str,
        city: str,
        frequency: str,
        token_types: Iterable[str],
        generate_token: Callable[[], str],
    ) -> CreatedSubscription:
        """
        Create a user, its subscription and one token per requested type in a single
        transaction. All four rows share one creation timestamp.
        """
        with self._transaction("create subscription") as tx:
            created_at = datetime.now(timezone.utc)

            user = User(email=email, is_confirmed=False, created_at=created_at)
            tx.add(user)
            tx.flush()

            subscription = Subscription(
                user_id=user.id,
                city=city,
                frequency=frequency,
                created_at=created_at,
            )
            tx.add(subscription)

            tokens: dict[str, Token] = {}
            for token_type in token_types:
                token = Token(
                    value=generate_token(),
                    type=token_type,
                    user_id=user.id,
                    created_at=created_at,
                )
                tx.add(token)
                tokens[token_type] = token

            tx.flush()
            result = CreatedSubscription(user=user, subscription=subscription, tokens=tokens)

        logger.info("Created user %s with %s subscription for %s", user.id, frequency, city)
        return result

    def confirm_user_and_delete_token(self, user_id: uuid.UUID, token_id: uuid.UUID) -> None:
        with self._transaction("confirm user") as tx:
            updated = (
                tx.query(User)
                .filter(User.id == user_id)
                .update({User.is_confirmed: True}, synchronize_session=False)
            )
            if not updated:
                raise RecordNotFoundError("confirm user: user not found")

            deleted = tx.query(Token).filter(Token.id == token_id).delete(synchronize_session=False)
            if not deleted:
                raise RecordNotFoundError("confirm user: token already consumed")
        # Bulk statements bypass the identity map.
        self.db.expire_all()

    def delete_user_with_tokens_and_subscription(self, user_id: uuid.UUID) -> None:
        with self._transaction("delete user") as tx:
            tx.query(Token).filter(Token.user_id == user_id).delete(synchronize_session=False)
            tx.query(Subscription).filter(Subscription.user_id == user_id).delete(synchronize_session=False)
            deleted = tx.query(User).filter(User.id == user_id).delete(synchronize_session=False)
            if not deleted:
                raise RecordNotFoundError("delete user: user not found")
        self.db.expire_all()

    # -------------------------
    # Dispatcher projection
    # -------------------------
    def get_user_email_info_batch(self, limit: int, offset: int, frequency: str) -> list[UserEmailInfo]:
        """
        One page of confirmed subscribers for `frequency`, oldest users first.
        Offset pagination: concurrent signups may shift rows across page boundaries.
        """
        try:
            rows = (
                self.db.query(User.email, Subscription.city, Token.value)
                .join(
                    Subscription,
                    and_(Subscription.user_id == User.id, Subscription.frequency == frequency),
                )
                .join(
                    Token,
                    and_(Token.user_id == User.id, Token.type == TokenType.unsubscribe.value),
                )
                .filter(User.is_confirmed.is_(True))
                .order_by(User.created_at.asc(), User.id.asc())
                .limit(limit)
                .offset(offset)
                .all()
            )
        except SQLAlchemyError as exc:
            raise StoreError("error loading subscriber batch") from exc

        return [UserEmailInfo(email=email, city=city, token_value=value) for email, city, value in rows]
