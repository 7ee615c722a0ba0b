"""
External Integrations for Practice Financial Resiliency

Provides connections to:
- Outbound webhooks (assessment submissions)
"""

from .webhook_client import WebhookClient, WebhookConfig, WebhookResult

__all__ = [
    'WebhookClient',
    'WebhookConfig',
    'WebhookResult'
]
