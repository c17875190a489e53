from paperbot.schemas.webhook import InboundMessage, WebhookAck, WebhookEnvelope, WhatsAppMessage

__all__ = ["InboundMessage", "WebhookAck", "WebhookEnvelope", "WhatsAppMessage"]
