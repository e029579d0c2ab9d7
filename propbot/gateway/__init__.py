"""HTTP ingress for channel webhooks."""

from propbot.gateway.webhook_server import WebhookServer

__all__ = ["WebhookServer"]
