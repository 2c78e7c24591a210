"""Outbound WhatsApp messaging through the WhatsApp Cloud API."""

import re
import time
from typing import Protocol

import httpx
import structlog

from app.config import Settings
from app.core.exceptions import ValidationException
from app.schemas.notifications import SendResult

logger = structlog.get_logger(__name__)

MAX_MESSAGE_LENGTH = 4096
BRAZIL_COUNTRY_CODE = "55"
# Client errors worth retrying: request timeout and rate limiting
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


class MessageChannel(Protocol):
    """Delivers a text body to a phone number."""

    async def send(self, destination: str, body: str) -> SendResult: ...


def format_phone_e164(phone: str) -> str:
    """
    Normalise a Brazilian mobile number to E.164.

    Accepts ``11999999999``, ``(11) 99999-9999``, ``5511999999999`` and
    ``+5511999999999``.

    Raises:
        ValidationException: If the number is not a Brazilian mobile number
    """
    digits = re.sub(r"\D", "", phone or "")

    if len(digits) == 13 and digits.startswith(BRAZIL_COUNTRY_CODE):
        digits = digits[2:]
    elif len(digits) != 11:
        raise ValidationException(
            "Invalid phone number length: expected 11 digits, or 13 with country code 55",
            context={"digits": len(digits)},
        )

    area_code, number = int(digits[:2]), digits[2:]
    if area_code < 11:
        raise ValidationException("Invalid Brazilian area code")
    if not number.startswith("9"):
        raise ValidationException("Invalid Brazilian mobile number: must start with 9")

    return f"+{BRAZIL_COUNTRY_CODE}{digits}"


class WhatsAppChannel:
    """
    WhatsApp Cloud API client.

    In mock mode messages are logged and reported as delivered without any
    HTTP call. Delivery failures are returned as unsuccessful ``SendResult``s.
    Network errors, 5xx, 408 and 429 are retryable; a bad destination, a bad
    body or any other 4xx is not.
    """

    def __init__(
        self,
        api_url: str,
        phone_id: str | None,
        access_token: str | None,
        timeout: float = 10.0,
        mock: bool = False,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.phone_id = phone_id
        self.access_token = access_token
        self.mock = mock
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppChannel":
        """Build a channel from application settings."""
        return cls(
            api_url=settings.whatsapp_api_url,
            phone_id=settings.whatsapp_phone_id,
            access_token=settings.whatsapp_access_token,
            timeout=settings.whatsapp_timeout_seconds,
            mock=settings.whatsapp_mock,
        )

    async def send(self, destination: str, body: str) -> SendResult:
        """
        Send a text message.

        Args:
            destination: Recipient phone number, any accepted Brazilian format
            body: Message text

        Returns:
            Send result carrying the provider message id on success
        """
        if not body.strip() or len(body) > MAX_MESSAGE_LENGTH:
            logger.warning("invalid_message_body", message_length=len(body))
            return SendResult(
                success=False, error="Message body is empty or too long", retryable=False
            )

        try:
            to = format_phone_e164(destination)
        except ValidationException as e:
            logger.warning("invalid_destination_phone", error=e.message)
            return SendResult(success=False, error=e.message, status_code=400, retryable=False)

        if self.mock:
            logger.info("mock_whatsapp_message", to=to, message_length=len(body))
            return SendResult(success=True, message_id=f"mock-{int(time.time() * 1000)}")

        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }

        try:
            response = await self.client.post(
                f"{self.api_url}/{self.phone_id}/messages",
                json=payload,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.HTTPError as e:
            logger.error("whatsapp_request_failed", to=to, error=str(e))
            return SendResult(success=False, error=f"Network error: {e.__class__.__name__}")

        if response.is_success:
            messages = response.json().get("messages") or [{}]
            message_id = messages[0].get("id")
            logger.info("whatsapp_message_sent", to=to, message_id=message_id)
            return SendResult(success=True, message_id=message_id, status_code=response.status_code)

        error = _error_message(response)
        retryable = _is_retryable(response.status_code)
        log_method = logger.error if retryable else logger.warning
        log_method(
            "whatsapp_api_error",
            to=to,
            status_code=response.status_code,
            error=error,
            retryable=retryable,
        )
        return SendResult(
            success=False,
            error=error,
            status_code=response.status_code,
            retryable=retryable,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()


def _is_retryable(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_CLIENT_STATUSES


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return f"WhatsApp API error: {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"WhatsApp API error: {response.status_code}"
