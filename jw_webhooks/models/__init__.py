from jw_webhooks.models.hook_record import HookRecord, HookRow
from jw_webhooks.models.schemas import WebhookEventBody

__all__ = [
    "HookRecord",
    "HookRow",
    "WebhookEventBody",
]
