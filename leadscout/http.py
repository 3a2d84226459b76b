from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

import requests

logger = logging.getLogger("leadscout.http")

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}
DEFAULT_USER_AGENT = "leadscout/0.1 (+website audit)"


@dataclass
class RequestManager:
    timeout_seconds: int = 10
    max_retries: int = 2
    backoff_seconds: tuple[int, ...] = (1, 3)
    headers: dict[str, str] = field(default_factory=lambda: {"User-Agent": DEFAULT_USER_AGENT})

    def get_text(self, url: str) -> str:
        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                resp = requests.get(url, timeout=self.timeout_seconds, headers=self.headers, allow_redirects=True)
                if resp.status_code in RETRYABLE_STATUSES:
                    raise requests.HTTPError(f"retryable status {resp.status_code}", response=resp)
                resp.raise_for_status()
                return resp.text
            except requests.RequestException as exc:
                last_error = exc
                if isinstance(exc, requests.ConnectionError) and "NameResolutionError" in str(exc):
                    break
                if attempt >= self.max_retries - 1:
                    break
                delay = self.backoff_seconds[min(attempt, len(self.backoff_seconds) - 1)]
                logger.debug("GET %s failed (%s), retrying in %ss", url, exc, delay)
                time.sleep(delay)
        raise RuntimeError(f"Request failed after retries: {url} ({last_error})")
