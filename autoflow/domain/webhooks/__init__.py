"""Webhook configuration, delivery and reception."""
from .entities import WebhookConfig, WebhookConfigCreate, WebhookConfigPublic, WebhookLog
from .signatures import compute_signature, verify_signature, extract_signature
from .rate_limit import FixedWindowRateLimiter, RateLimitDecision
from .repository import WebhookRepository
from .dispatcher import WebhookDispatcher, retry_delay_ms, render_body
from .receiver import WebhookReceiver, ReceivedWebhook, parse_body
