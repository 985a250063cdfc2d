# weather_app/routes/subscriptions.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, HTTPException

from weather_app.dependencies.services import get_subscription_service, get_token_service
from weather_app.schemas.subscription import MessageOut
from weather_app.services.errors import (
    ConfirmationMailError,
    SubscriptionValidationError,
    TokenEmptyError,
    TokenNotFoundError,
    TokenWrongTypeError,
    UserAlreadyExistsError,
)
from weather_app.services.subscriptions import SubscriptionService

logger = logging.getLogger(__name__)

GENERIC_ERROR_MSG = "Something went wrong"

router = APIRouter(prefix="/api", tags=["subscriptions"])


def _token_error(exc: Exception) -> HTTPException:
    if isinstance(exc, TokenNotFoundError):
        return HTTPException(status_code=404, detail="Token not found")
    if isinstance(exc, (TokenEmptyError, TokenWrongTypeError)):
        return HTTPException(status_code=400, detail=str(exc))
    logger.error("Token request failed: %s", exc, exc_info=exc)
    return HTTPException(status_code=500, detail=GENERIC_ERROR_MSG)


@router.post("/subscribe", response_model=MessageOut)
def subscribe(
    email: str | None = Form(None),
    city: str | None = Form(None),
    frequency: str | None = Form(None),
    service: SubscriptionService = Depends(get_subscription_service),
):
    for name, value in (("email", email), ("city", city), ("frequency", frequency)):
        if not value or not value.strip():
            raise HTTPException(status_code=400, detail=f'"{name}" parameter is empty')

    try:
        service.subscribe(email, city, frequency)
    except SubscriptionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UserAlreadyExistsError:
        raise HTTPException(status_code=409, detail="Email already subscribed")
    except ConfirmationMailError:
        raise HTTPException(
            status_code=500,
            detail="Subscription created, but the confirmation email could not be sent",
        )
    except Exception as e:  # noqa: BLE001
        logger.error("Subscribe failed: %s", e, exc_info=e)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MSG)

    return {"message": "Subscription successful. Confirmation email sent."}


def _confirm(service: SubscriptionService, token: str) -> dict:
    try:
        service.confirm(token)
    except Exception as e:  # noqa: BLE001
        raise _token_error(e)
    return {"message": "Subscription confirmed successfully"}


def _unsubscribe(service: SubscriptionService, token: str) -> dict:
    try:
        service.unsubscribe(token)
    except Exception as e:  # noqa: BLE001
        raise _token_error(e)
    return {"message": "Unsubscribed successfully"}


@router.get("/confirm/{token}", response_model=MessageOut)
def confirm(token: str, service: SubscriptionService = Depends(get_token_service)):
    return _confirm(service, token)


# Trailing slash without a token: empty token (400). Bare path without slash: 404.
@router.get("/confirm/", response_model=MessageOut, include_in_schema=False)
def confirm_empty(service: SubscriptionService = Depends(get_token_service)):
    return _confirm(service, "")


@router.get("/unsubscribe/{token}", response_model=MessageOut)
def unsubscribe(token: str, service: SubscriptionService = Depends(get_token_service)):
    return _unsubscribe(service, token)


@router.get("/unsubscribe/", response_model=MessageOut, include_in_schema=False)
def unsubscribe_empty(service: SubscriptionService = Depends(get_token_service)):
    return _unsubscribe(service, "")


@router.api_route("/confirm", methods=["GET", "POST"], include_in_schema=False)
@router.api_route("/unsubscribe", methods=["GET", "POST"], include_in_schema=False)
def missing_token():
    raise HTTPException(status_code=404, detail="Not found")
