from __future__ import annotations

"""Lightweight JSON-over-HTTP helper used by the market data providers.

Uses stdlib urllib. Market data calls are made once (retries=0): retry policy
belongs to the caller, so a timeout or throttle surfaces immediately.
"""
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Mapping, Optional


class HttpError(Exception):
    """Transport or HTTP-level failure. `status` is None for network errors."""

    def __init__(self, message: str, status: Optional[int] = None, url: str = ""):
        super().__init__(message)
        self.status = status
        self.url = url


def build_url(base: str, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    url = f"{base.rstrip('/')}/{path.lstrip('/')}"
    if params:
        url = f"{url}?{urllib.parse.urlencode(params)}"
    return url


def get_json(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 10.0,
    retries: int = 0,
    backoff: float = 0.5,
) -> Dict[str, Any]:
    request = urllib.request.Request(url, headers={"Accept": "application/json", **(headers or {})})
    attempt = 0
    while True:
        try:
            with urllib.request.urlopen(request, timeout=timeout) as resp:  # nosec B310
                data = resp.read()
                return json.loads(data.decode("utf-8"))
        except urllib.error.HTTPError as e:
            last_err = HttpError(f"HTTP {e.code} for {url}", status=e.code, url=url)
            # Client errors other than throttling will not improve on retry.
            if 400 <= e.code < 500 and e.code != 429:
                raise last_err from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            last_err = HttpError(f"Failed to fetch {url}: {e}", url=url)
        except ValueError as e:  # JSON decode
            raise HttpError(f"Invalid JSON from {url}: {e}", url=url) from e
        if attempt >= retries:
            raise last_err
        time.sleep(backoff * (2**attempt))
        attempt += 1
