from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests
from requests.exceptions import ConnectionError, ReadTimeout, RequestException

from eventures.errors import SourceUnavailable

log = logging.getLogger(__name__)


@dataclass
class HTTPClient:
    user_agent: str
    timeout_s: int = 20
    tries: int = 3
    backoff_s: float = 0.5
    username: str = ""
    password: str = ""

    def __post_init__(self) -> None:
        self.s = requests.Session()
        self.s.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
            }
        )
        if self.username:
            self.s.auth = (self.username, self.password)

    def get_json(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        timeout_s: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        GET ``url`` and decode its JSON body.

        Floats are kept as their source text (``parse_float=str``) so
        coordinates reach the aggregator exactly as the API wrote them.
        Timeouts and connection errors are retried with exponential backoff;
        anything still failing is raised as SourceUnavailable.
        """
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        last_err: Optional[Exception] = None
        for attempt in range(self.tries):
            try:
                r = self.s.get(url, params=params, timeout=timeout)
                r.raise_for_status()
                return r.json(parse_float=str)
            except (ReadTimeout, ConnectionError) as e:
                last_err = e
                log.debug("GET %s failed (attempt %d/%d): %s", url, attempt + 1, self.tries, e)
                if attempt + 1 < self.tries:
                    time.sleep(self.backoff_s * (2**attempt))
            except (RequestException, ValueError) as e:
                raise SourceUnavailable(f"GET {url} failed: {type(e).__name__}: {e}") from e
        raise SourceUnavailable(f"GET {url} failed after {self.tries} tries: {last_err}") from last_err
