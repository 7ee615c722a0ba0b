"""
Outbound Webhook Client

Posts completed assessment export records to a configured webhook
(automation platform, CRM intake, etc.). Delivery is fire-and-forget:
failures are logged and reported in the result, never raised.
"""

import os
import logging
from typing import Optional, Dict, Any
from dataclasses import dataclass

import requests

logger = logging.getLogger(__name__)


@dataclass
class WebhookConfig:
    """Configuration for the outbound webhook"""
    url: str = ""
    enabled: bool = False
    timeout: float = 10.0

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.url)

    @classmethod
    def from_env(cls) -> 'WebhookConfig':
        """Create config from environment variables"""
        return cls(
            url=os.getenv('WEBHOOK_URL', ''),
            enabled=os.getenv('WEBHOOK_ENABLED', 'false').lower() == 'true',
            timeout=float(os.getenv('WEBHOOK_TIMEOUT', '10'))
        )

    @classmethod
    def from_app_config(cls, app_config: Dict[str, Any]) -> 'WebhookConfig':
        """Create config from a Flask app config mapping"""
        return cls(
            url=app_config.get('WEBHOOK_URL', ''),
            enabled=bool(app_config.get('WEBHOOK_ENABLED', False)),
            timeout=float(app_config.get('WEBHOOK_TIMEOUT', 10))
        )


@dataclass
class WebhookResult:
    """Outcome of one delivery attempt"""
    success: bool
    status: Optional[int] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'success': self.success}
        if self.status is not None:
            data['status'] = self.status
        if self.reason:
            data['reason'] = self.reason
        if self.error:
            data['error'] = self.error
        return data


class WebhookClient:
    """
    Webhook delivery client.

    Example:
        client = WebhookClient(WebhookConfig.from_env())
        result = client.send(export_data)
        if not result.success:
            print(result.reason or result.error)
    """

    def __init__(self, config: Optional[WebhookConfig] = None):
        self.config = config or WebhookConfig.from_env()
        self._session = requests.Session()

    def send(self, payload: Dict[str, Any]) -> WebhookResult:
        """POST a JSON payload to the webhook URL"""
        if not self.config.is_configured:
            logger.info("Webhook not configured, skipping send")
            return WebhookResult(success=False, reason='not_configured')

        try:
            response = self._session.post(
                self.config.url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.config.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Webhook error: {e}")
            return WebhookResult(success=False, error=str(e))

        if not response.ok:
            logger.error(f"Webhook returned HTTP {response.status_code}")
        return WebhookResult(success=response.ok, status=response.status_code)
