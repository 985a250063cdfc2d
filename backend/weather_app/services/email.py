from __future__ import annotations

import logging
from typing import Any, Protocol

import boto3
import resend
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError, NoCredentialsError

from weather_app.core.config import Settings

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(RuntimeError):
    pass


class EmailDeliveryError(RuntimeError):
    """
    Raised when a provider is configured but delivery fails.
    Message is safe to log; it never includes the message body.
    """


class Mailer(Protocol):
    def send(self, *, to_email: str, subject: str, html: str, text: str) -> str | None:
        ...


def _format_sender(from_email: str, from_name: str | None) -> str:
    if from_name:
        return f"{from_name} <{from_email}>"
    return from_email


class ResendMailer:
    def __init__(self, api_key: str, from_email: str, from_name: str | None = None):
        if not api_key:
            raise EmailNotConfiguredError("RESEND_API_KEY is not set")
        if not from_email:
            raise EmailNotConfiguredError("FROM_EMAIL is not set")
        self.api_key = api_key
        self.sender = _format_sender(from_email, from_name)

    def send(self, *, to_email: str, subject: str, html: str, text: str) -> str | None:
        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [to_email],
            "subject": subject,
            "html": html,
            "text": text,
        }

        try:
            resend.api_key = self.api_key
            res = resend.Emails.send(payload)  # type: ignore[attr-defined]
        except Exception as e:  # noqa: BLE001
            raise EmailDeliveryError(f"Resend send failed: {e}") from e

        msg_id: str | None = None
        if isinstance(res, dict):
            if res.get("error"):
                raise EmailDeliveryError(f"Resend API error: {res.get('error')}")
            v = res.get("id")
            if isinstance(v, str) and v.strip():
                msg_id = v.strip()

        logger.info("Resend email sent: to=%s msg_id=%s", to_email, msg_id)
        return msg_id


class SesMailer:
    def __init__(self, region: str, from_email: str, from_name: str | None = None, client: Any = None):
        if not region:
            raise EmailNotConfiguredError("AWS_REGION is not set (required for SES)")
        if not from_email:
            raise EmailNotConfiguredError("FROM_EMAIL is not set")
        self.sender = _format_sender(from_email, from_name)
        self._client = client or boto3.client("ses", region_name=region)

    def send(self, *, to_email: str, subject: str, html: str, text: str) -> str | None:
        try:
            res = self._client.send_email(
                Source=self.sender,
                Destination={"ToAddresses": [to_email]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": text, "Charset": "UTF-8"},
                        "Html": {"Data": html, "Charset": "UTF-8"},
                    },
                },
            )
        except NoCredentialsError as e:
            logger.exception("SES email failed (no AWS credentials)")
            raise EmailDeliveryError("SES email failed: AWS credentials not available") from e
        except EndpointConnectionError as e:
            logger.exception("SES email failed (endpoint connection)")
            raise EmailDeliveryError("SES email failed: could not connect to SES endpoint") from e
        except ClientError as e:
            logger.exception("SES email failed (client error)")
            code = (e.response or {}).get("Error", {}).get("Code", "ClientError")
            if code in {"MessageRejected", "MailFromDomainNotVerifiedException"}:
                raise EmailDeliveryError(
                    "SES rejected the email. Verify FROM_EMAIL (or domain) and check if SES is in sandbox."
                ) from e
            raise EmailDeliveryError(f"SES email failed: {code}") from e
        except BotoCoreError as e:
            logger.exception("SES email failed (botocore)")
            raise EmailDeliveryError("SES email failed") from e

        msg_id = res.get("MessageId")
        logger.info("SES email sent: to=%s msg_id=%s", to_email, msg_id)
        return msg_id


class DisabledMailer:
    """Used when EMAIL_ENABLED=false: logs the attempt and sends nothing."""

    def send(self, *, to_email: str, subject: str, html: str, text: str) -> str | None:
        logger.info("Email disabled; dropping message to=%s subject=%r", to_email, subject)
        return None


def _normalize_provider(raw: str | None) -> str:
    """
    Supported providers:
    - resend (default when unset)
    - ses
    """
    provider = (raw or "").strip().lower()
    if not provider:
        return "resend"
    if provider in {"resend", "ses"}:
        return provider
    raise EmailNotConfiguredError(f"Unsupported EMAIL_PROVIDER={provider!r}. Supported: resend (default), ses.")


def build_mailer(settings: Settings) -> Mailer:
    """
    Select the mail provider from settings.
    - EMAIL_ENABLED=false: DisabledMailer
    - EMAIL_PROVIDER=resend (default): Resend API
    - EMAIL_PROVIDER=ses: AWS SES via boto3
    """
    if not settings.EMAIL_ENABLED:
        return DisabledMailer()

    provider = _normalize_provider(settings.EMAIL_PROVIDER)
    if provider == "ses":
        return SesMailer(settings.AWS_REGION, settings.FROM_EMAIL, settings.FROM_NAME)
    return ResendMailer(settings.RESEND_API_KEY, settings.FROM_EMAIL, settings.FROM_NAME)
