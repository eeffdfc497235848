"""
User report delivery
"""

import logging
from typing import Optional

import httpx

from wordsmoke.core.config import Settings, settings as default_settings
from wordsmoke.core.errors import APIError

logger = logging.getLogger(__name__)

class SupportClient:
    """Posts user reports to the support form endpoint"""

    def __init__(
        self,
        url: Optional[str] = None,
        access_key: Optional[str] = None,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or default_settings
        self.url = url or self.config.SUPPORT_URL
        self.access_key = access_key if access_key is not None else self.config.SUPPORT_ACCESS_KEY
        self.timeout = self.config.API_TIMEOUT
        self.transport = transport

    async def send(self, subject: str, message: str, from_name: str = "Wordsmoke") -> None:
        """Deliver one report; raises APIError when the form service rejects it"""
        body = {
            "access_key": self.access_key,
            "subject": subject,
            "from_name": from_name,
            "message": message,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json=body, headers={"Accept": "application/json"})

        if not 200 <= response.status_code < 300:
            raise APIError(response.status_code, response.text)
        try:
            result = response.json()
        except ValueError:
            result = {}
        # The form service answers 200 with success=false for some rejections
        if isinstance(result, dict) and result.get("success") is False:
            raise APIError(response.status_code, response.text)
        logger.info("Support report sent: %s", subject)
