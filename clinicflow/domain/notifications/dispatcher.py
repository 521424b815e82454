"""
Notification dispatcher
Sends one message through the first channel that accepts it.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

import httpx

from ...exceptions import ProviderError, ValidationError
from ...shared.validators import normalize_phone
from .channels import Channel, NotificationSettings, build_channels

logger = logging.getLogger(__name__)


@dataclass
class ChannelAttempt:
    channel: str
    status: str  # sent, failed, skipped
    error: Optional[str] = None


@dataclass
class DispatchResult:
    success: bool
    channel: Optional[str] = None
    message_id: Optional[str] = None
    simulation: bool = False
    error: Optional[str] = None
    attempts: list[ChannelAttempt] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class NotificationDispatcher:
    """
    Tries channels in preference order. Unconfigured channels are skipped
    without a request, a failing channel falls through to the next one, and
    no channel is tried twice in one call.
    """

    def __init__(
        self,
        settings: Optional[NotificationSettings] = None,
        channels: Optional[list[Channel]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or NotificationSettings.from_env()
        self.transport = transport
        self.channels = channels if channels is not None else build_channels(
            self.settings, transport=transport
        )

    def _channels_for(self, channel_preference: Optional[list[str]]) -> list[Channel]:
        if not channel_preference:
            return self.channels
        return build_channels(self.settings, order=channel_preference, transport=self.transport)

    async def send(
        self,
        recipient: str,
        message: str,
        channel_preference: Optional[list[str]] = None,
    ) -> DispatchResult:
        """
        Deliver a message to a patient phone number.

        Raises:
            ValidationError: Invalid phone number or empty message, before any network call
        """
        phone_digits = normalize_phone(recipient)
        if not message or not message.strip():
            raise ValidationError("Message body is empty")

        attempts: list[ChannelAttempt] = []
        tried = set()

        for channel in self._channels_for(channel_preference):
            if channel.name in tried:
                continue
            tried.add(channel.name)

            if not channel.is_configured():
                logger.debug(f"Channel {channel.name} not configured, skipping")
                attempts.append(ChannelAttempt(channel.name, "skipped", "not configured"))
                continue

            try:
                logger.info(f"📱 Sending via {channel.name} to +{phone_digits}")
                message_id = await channel.send_message(phone_digits, message)
            except ProviderError as e:
                logger.warning(f"⚠️ {channel.name} failed for +{phone_digits}: {e.message}")
                attempts.append(ChannelAttempt(channel.name, "failed", e.message))
                continue
            except Exception as e:
                logger.error(
                    f"❌ {channel.name} raised {type(e).__name__} for +{phone_digits}: {e}",
                    exc_info=True,
                )
                attempts.append(
                    ChannelAttempt(channel.name, "failed", f"{channel.name}: {type(e).__name__}: {e}")
                )
                continue

            attempts.append(ChannelAttempt(channel.name, "sent"))
            logger.info(f"✅ Message sent via {channel.name} to +{phone_digits}")
            return DispatchResult(
                success=True,
                channel=channel.name,
                message_id=message_id,
                simulation=channel.simulated,
                attempts=attempts,
            )

        failures = [a.error for a in attempts if a.status == "failed"]
        error = "; ".join(failures) if failures else "No notification channel is configured"
        logger.error(f"❌ All channels failed for +{phone_digits}: {error}")
        return DispatchResult(success=False, error=error, attempts=attempts)
