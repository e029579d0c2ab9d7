"""SMS delivery through the Twilio REST API."""

import httpx
from loguru import logger

from propbot.channels.base import BaseChannel
from propbot.config.schema import SmsConfig
from propbot.core.errors import TransientProviderError
from propbot.core.timeout import with_timeout
from propbot.utils.pii import mask_phone_number

SEND_TIMEOUT = 5.0


class SmsChannel(BaseChannel):
    """
    Sends replies as SMS. Delivery is best effort: failures are logged and
    the remaining chunks are still attempted.
    """

    name = "sms"

    def __init__(self, config: SmsConfig, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.config.account_sid and self.config.auth_token and self.config.from_number)

    @property
    def messages_url(self) -> str:
        return f"{self.config.api_base.rstrip('/')}/Accounts/{self.config.account_sid}/Messages.json"

    async def _post(self, data: dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=SEND_TIMEOUT, transport=self._transport) as client:
            return await client.post(
                self.messages_url,
                data=data,
                auth=(self.config.account_sid, self.config.auth_token),
            )

    async def _send_chunk(self, recipient: str, body: str) -> bool:
        masked = mask_phone_number(recipient)
        if not self.configured:
            logger.warning(f"SMS not configured, dropping {len(body)} chars for {masked}")
            return False

        data = {"From": self.config.from_number, "To": recipient, "Body": body}
        try:
            response = await with_timeout(self._post(data), SEND_TIMEOUT, "twilio")
        except (TransientProviderError, httpx.HTTPError) as e:
            logger.error(f"SMS delivery to {masked} failed: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"SMS delivery to {masked} rejected ({response.status_code}): {response.text[:200]}")
            return False

        try:
            sid = response.json().get("sid", "")
        except ValueError:
            sid = ""
        logger.info(f"SMS sent to {masked} ({len(body)} chars) {sid}".rstrip())
        return True
