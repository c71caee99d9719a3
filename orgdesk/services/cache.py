from __future__ import annotations
# orgdesk/services/cache.py
import httpx
from orgdesk.config import settings

# Module-level singleton, one pooled connection set for every Redis call.
_http = httpx.AsyncClient(
    limits=httpx.Limits(max_connections=20, max_keepalive_connections=10, keepalive_expiry=30),
    timeout=httpx.Timeout(2.0),
)


class UpstashClient:
    """Minimal Upstash Redis REST client used for rate-limit counters."""

    def __init__(self):
        self.url = settings.UPSTASH_REDIS_REST_URL
        self.headers = {"Authorization": f"Bearer {settings.UPSTASH_REDIS_REST_TOKEN}"}

    async def pipeline(self, commands: list[list]) -> list:
        r = await _http.post(
            f"{self.url}/pipeline", headers=self.headers, json=commands
        )
        r.raise_for_status()
        return r.json()

    async def close(self):
        await _http.aclose()


cache = UpstashClient()
