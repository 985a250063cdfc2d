# weather_app/services/subscriptions.py
"""
Subscription lifecycle: signup, confirmation and unsubscription.

Each signup mints one `confirm` and one `unsubscribe` token. A token is consumed
(deleted) by exactly one successful use; presenting it for the other purpose
leaves it untouched.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import ValidationError

from weather_app.core.security import generate_token
from weather_app.models.token import Token, TokenType
from weather_app.schemas.subscription import SubscribeIn
from weather_app.services.email import Mailer
from weather_app.services.errors import (
    ConfirmationMailError,
    SubscriptionValidationError,
    TokenEmptyError,
    TokenNotFoundError,
    TokenWrongTypeError,
    UserAlreadyExistsError,
)
from weather_app.services.links import build_confirm_url, build_unsubscribe_url
from weather_app.services.mail_templates import render_confirmation_mail
from weather_app.services.subscriber_store import (
    CreatedSubscription,
    DuplicateRecordError,
    RecordNotFoundError,
    SubscriberStoreProtocol,
)

logger = logging.getLogger(__name__)

SIGNUP_TOKEN_TYPES = (TokenType.confirm.value, TokenType.unsubscribe.value)


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(part) for part in first.get("loc", ())) or "input"
    return f"Invalid {loc}: {first.get('msg', 'invalid value')}"


class SubscriptionService:
    def __init__(
        self,
        store: SubscriberStoreProtocol,
        mailer: Mailer | None,
        *,
        base_url: str,
        token_generator: Callable[[], str] = generate_token,
    ):
        self.store = store
        self.mailer = mailer
        self.base_url = base_url
        self.token_generator = token_generator

    def subscribe(self, email: str, city: str, frequency: str) -> CreatedSubscription:
        try:
            payload = SubscribeIn(email=(email or "").strip(), city=city, frequency=frequency)
        except ValidationError as exc:
            raise SubscriptionValidationError(_validation_message(exc)) from exc

        normalized_email = str(payload.email).strip().lower()

        if self.store.get_user_by_email(normalized_email) is not None:
            logger.info("Signup rejected, user already exists: %s", normalized_email)
            raise UserAlreadyExistsError(f"User {normalized_email} already exists")

        try:
            created = self.store.create_user_with_subscription_and_tokens(
                normalized_email,
                payload.city,
                payload.frequency.value,
                SIGNUP_TOKEN_TYPES,
                self.token_generator,
            )
        except DuplicateRecordError:
            # Lost a race with a concurrent signup for the same email.
            if self.store.get_user_by_email(normalized_email) is not None:
                raise UserAlreadyExistsError(f"User {normalized_email} already exists")
            raise

        confirm_url = build_confirm_url(self.base_url, created.tokens[TokenType.confirm.value].value)
        unsubscribe_url = build_unsubscribe_url(self.base_url, created.tokens[TokenType.unsubscribe.value].value)

        if self.mailer is None:
            raise ConfirmationMailError("No mailer configured")

        mail = render_confirmation_mail(confirm_url=confirm_url, unsubscribe_url=unsubscribe_url)
        try:
            self.mailer.send(to_email=normalized_email, subject=mail.subject, html=mail.html, text=mail.text)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Confirmation email to %s failed", normalized_email)
            raise ConfirmationMailError("Unable to send confirmation email") from exc

        return created

    def confirm(self, token_value: str) -> None:
        token = self._get_token_of_type(token_value, TokenType.confirm)
        user_id, token_id = token.user_id, token.id
        try:
            self.store.confirm_user_and_delete_token(user_id, token_id)
        except RecordNotFoundError as exc:
            # Consumed by a concurrent request between lookup and commit.
            raise TokenNotFoundError("Token not found") from exc
        logger.info("User %s confirmed", user_id)

    def unsubscribe(self, token_value: str) -> None:
        token = self._get_token_of_type(token_value, TokenType.unsubscribe)
        user_id = token.user_id
        try:
            self.store.delete_user_with_tokens_and_subscription(user_id)
        except RecordNotFoundError as exc:
            raise TokenNotFoundError("Token not found") from exc
        logger.info("User %s unsubscribed", user_id)

    def _get_token_of_type(self, token_value: str, expected: TokenType) -> Token:
        if not token_value:
            raise TokenEmptyError("Token is empty")

        token = self.store.get_token(token_value)
        if token is None:
            raise TokenNotFoundError("Token not found")
        if token.type != expected.value:
            raise TokenWrongTypeError("Invalid token type")
        return token
