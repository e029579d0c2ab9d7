"""Webhook Ingress Server."""
from datetime import datetime, timezone

from aiohttp import web
from loguru import logger

from propbot.agent.processor import MessageProcessor
from propbot.channels.base import BaseChannel
from propbot.integrations.twilio_webhook import parse_twilio_inbound, twiml_response, verify_twilio_signature
from propbot.memory.ttl_cache import TTLCache
from propbot.utils.pii import mask_phone_number

STOP_KEYWORDS = frozenset({"STOP", "STOPALL", "UNSUBSCRIBE", "CANCEL", "END", "QUIT"})
START_KEYWORDS = frozenset({"START", "SUBSCRIBE", "UNSTOP"})
HELP_KEYWORDS = frozenset({"HELP", "INFO"})

STOP_REPLY = "You have been unsubscribed and will receive no further messages. Reply START to resubscribe."
START_REPLY = "You have been resubscribed. Text any question about your data, a property or the market."
HELP_REPLY = (
    "Text a question about your workspace data, a property address or the market. "
    "Reply STOP to unsubscribe."
)

ONE_YEAR_SECONDS = 365 * 24 * 3600


class WebhookServer:
    def __init__(
        self,
        processor: MessageProcessor,
        sender: BaseChannel,
        auth_token: str | None = None,
        verify_signature: bool = False,
        public_url: str | None = None,
        service_name: str = "propbot",
        opt_outs: TTLCache | None = None,
        opt_out_ttl_seconds: float = ONE_YEAR_SECONDS,
    ):
        self.processor = processor
        self.sender = sender
        self.auth_token = (auth_token or "").strip()
        self.verify_signature = verify_signature
        self.public_url = (public_url or "").strip()
        self.service_name = service_name
        self.opt_out_ttl_seconds = opt_out_ttl_seconds
        self.opt_outs = opt_outs if opt_outs is not None else TTLCache(default_ttl_seconds=opt_out_ttl_seconds)
        self.app = web.Application()
        self.app.router.add_post("/sms", self.handle_sms)
        self.app.router.add_get("/health", self.handle_health)

    @staticmethod
    def _twiml(message: str | None = None) -> web.Response:
        return web.Response(text=twiml_response(message), content_type="text/xml")

    def is_opted_out(self, phone_number: str) -> bool:
        return f"opt_out:{phone_number}" in self.opt_outs

    async def handle_sms(self, request: web.Request) -> web.Response:
        """Handle an inbound Twilio SMS webhook."""
        form = await request.post()
        params = {key: str(value) for key, value in form.items()}

        if self.verify_signature:
            url = self.public_url or str(request.url)
            signature = request.headers.get("X-Twilio-Signature", "")
            if not verify_twilio_signature(url, params, signature, self.auth_token):
                logger.warning("Rejected SMS webhook with invalid signature")
                return web.Response(text="Forbidden", status=403)

        inbound = parse_twilio_inbound(params)
        if inbound is None:
            return web.Response(text="Missing From or Body", status=400)

        masked = mask_phone_number(inbound.sender_id)
        keyword = inbound.body.strip().upper()

        if keyword in STOP_KEYWORDS:
            self.opt_outs.set(f"opt_out:{inbound.sender_id}", True, self.opt_out_ttl_seconds)
            logger.info(f"{masked} opted out")
            return self._twiml(STOP_REPLY)

        if keyword in START_KEYWORDS:
            self.opt_outs.delete(f"opt_out:{inbound.sender_id}")
            logger.info(f"{masked} opted back in")
            return self._twiml(START_REPLY)

        if keyword in HELP_KEYWORDS:
            return self._twiml(HELP_REPLY)

        if self.is_opted_out(inbound.sender_id):
            logger.info(f"Ignoring message from opted-out sender {masked}")
            return self._twiml()

        if not self.sender.is_allowed(inbound.sender_id):
            logger.warning(f"Access denied for sender {masked}. Add them to allowFrom to grant access.")
            return self._twiml()

        await self.processor.submit(inbound, self.sender)
        return self._twiml()

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "service": self.service_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def start(self, host: str = "0.0.0.0", port: int = 5000):
        """Start the webhook server."""
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        await site.start()
        return runner
