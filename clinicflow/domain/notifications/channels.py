"""
Notification channels
One class per outbound provider. Each channel either delivers a message or
raises ProviderError; choosing between channels is the dispatcher's job.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

import httpx

from ... import config
from ...exceptions import ProviderError

logger = logging.getLogger(__name__)

MSG91_SMS_URL = "https://api.msg91.com/api/v5/flow/"
MSG91_WHATSAPP_URL = "https://api.msg91.com/api/v5/whatsapp/whatsapp-outbound-message/"
TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"


@dataclass
class NotificationSettings:
    """Provider credentials and channel order. Missing credentials are a normal state."""

    msg91_auth_key: Optional[str] = None
    msg91_sender_id: str = "CLINIC"
    msg91_whatsapp_number: Optional[str] = None
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_number: str = "whatsapp:+14155238886"
    channel_order: list[str] = field(
        default_factory=lambda: ["msg91_sms", "twilio_whatsapp", "simulation"]
    )
    timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "NotificationSettings":
        return cls(
            msg91_auth_key=config.MSG91_AUTH_KEY,
            msg91_sender_id=config.MSG91_SENDER_ID,
            msg91_whatsapp_number=config.MSG91_WHATSAPP_NUMBER,
            twilio_account_sid=config.TWILIO_ACCOUNT_SID,
            twilio_auth_token=config.TWILIO_AUTH_TOKEN,
            twilio_whatsapp_number=config.TWILIO_WHATSAPP_NUMBER,
            channel_order=list(config.NOTIFICATION_CHANNELS),
            timeout_seconds=config.NOTIFICATION_TIMEOUT_SECONDS,
        )


class Channel:
    """Base class for an outbound message provider"""

    name = "channel"
    simulated = False

    def __init__(
        self,
        settings: NotificationSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.transport = transport

    def is_configured(self) -> bool:
        raise NotImplementedError

    async def send_message(self, phone_digits: str, body: str) -> Optional[str]:
        """
        Deliver `body` to `phone_digits` (country code + number, digits only).

        Returns:
            Provider message id, if the provider returns one

        Raises:
            ProviderError: Non-2xx response, network error, timeout or malformed body
        """
        raise NotImplementedError

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.timeout_seconds, transport=self.transport)

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.post(url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(self.name, "request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"network error: {e}") from e
        except (httpx.InvalidURL, UnicodeError, ValueError) as e:
            # Bad credential or URL settings fail while the request is being built
            raise ProviderError(self.name, f"invalid request: {e}") from e

        logger.info(f"📡 {self.name} response status: {response.status_code}")
        if not response.is_success:
            raise ProviderError(
                self.name, f"HTTP {response.status_code}: {_error_detail(response)}"
            )
        return response

    def _json(self, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(self.name, "malformed response body") from e
        if not isinstance(data, dict):
            raise ProviderError(self.name, "malformed response body")
        return data


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or "no response body"
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data)
    return str(data)


def _local_number(phone_digits: str) -> str:
    """Strip the home country code; MSG91 takes the country separately"""
    code = config.HOME_COUNTRY_CODE
    return phone_digits[len(code) :] if phone_digits.startswith(code) else phone_digits


class Msg91SmsChannel(Channel):
    """Transactional SMS through the MSG91 flow API (primary)"""

    name = "msg91_sms"

    def is_configured(self) -> bool:
        return bool(self.settings.msg91_auth_key)

    async def send_message(self, phone_digits: str, body: str) -> Optional[str]:
        payload = {
            "sender": self.settings.msg91_sender_id,
            "route": "4",  # transactional
            "country": config.HOME_COUNTRY_CODE,
            "sms": [{"message": body, "to": [_local_number(phone_digits)]}],
        }
        response = await self._post(
            MSG91_SMS_URL,
            json=payload,
            headers={"authkey": self.settings.msg91_auth_key, "content-type": "application/json"},
        )
        data = self._json(response)
        if data.get("type") == "error":
            raise ProviderError(self.name, str(data.get("message") or "rejected by provider"))
        return data.get("request_id") or data.get("message")


class Msg91WhatsAppChannel(Channel):
    """WhatsApp text message through MSG91's outbound API"""

    name = "msg91_whatsapp"

    def is_configured(self) -> bool:
        return bool(self.settings.msg91_auth_key and self.settings.msg91_whatsapp_number)

    async def send_message(self, phone_digits: str, body: str) -> Optional[str]:
        payload = {
            "integrated_number": self.settings.msg91_whatsapp_number,
            "content_type": "text",
            "payload": {
                "messaging_product": "whatsapp",
                "type": "text",
                "text": {"body": body},
            },
            "recipient_whatsapp": phone_digits,
        }
        response = await self._post(
            MSG91_WHATSAPP_URL,
            json=payload,
            headers={"authkey": self.settings.msg91_auth_key, "content-type": "application/json"},
        )
        data = self._json(response)
        if data.get("type") == "error" or data.get("status") == "fail":
            raise ProviderError(self.name, str(data.get("message") or "rejected by provider"))
        return data.get("request_id")


class TwilioWhatsAppChannel(Channel):
    """WhatsApp through the Twilio Messages API (secondary)"""

    name = "twilio_whatsapp"

    def is_configured(self) -> bool:
        return bool(self.settings.twilio_account_sid and self.settings.twilio_auth_token)

    async def send_message(self, phone_digits: str, body: str) -> Optional[str]:
        sender = self.settings.twilio_whatsapp_number
        if not sender.startswith("whatsapp:"):
            sender = f"whatsapp:{sender}"

        response = await self._post(
            TWILIO_MESSAGES_URL.format(account_sid=self.settings.twilio_account_sid),
            auth=(self.settings.twilio_account_sid, self.settings.twilio_auth_token),
            data={"From": sender, "To": f"whatsapp:+{phone_digits}", "Body": body},
        )
        data = self._json(response)
        if not data.get("sid"):
            raise ProviderError(self.name, "response did not include a message sid")
        return data["sid"]


class SimulationChannel(Channel):
    """Always succeeds and only logs; keeps development and demos working without credentials"""

    name = "simulation"
    simulated = True

    def is_configured(self) -> bool:
        return True

    async def send_message(self, phone_digits: str, body: str) -> Optional[str]:
        preview = body if len(body) <= 80 else f"{body[:77]}..."
        logger.info(f"🧪 [SIMULATION] Message to +{phone_digits}: {preview!r}")
        return f"sim-{uuid.uuid4().hex[:12]}"


CHANNEL_TYPES = {
    channel.name: channel
    for channel in (Msg91SmsChannel, Msg91WhatsAppChannel, TwilioWhatsAppChannel, SimulationChannel)
}


def build_channels(
    settings: NotificationSettings,
    order: Optional[list[str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[Channel]:
    """Instantiate channels by name in preference order; unknown names are skipped with a warning"""
    channels = []
    for name in order or settings.channel_order:
        channel_type = CHANNEL_TYPES.get(name)
        if channel_type is None:
            logger.warning(f"⚠️ Unknown notification channel '{name}' ignored")
            continue
        channels.append(channel_type(settings, transport=transport))
    return channels
