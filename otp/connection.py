#Purpose: Addressing a running OTP instance.
#An OTPConnection is just (hostname, port, router, ssl) or a full url override.
#It knows how to build the REST urls and how to ask OTP whether the router exists.
#It should not contain request/response parsing for plans (see client.py).

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

import requests

from .errors import OTPConnectionError

logger = logging.getLogger(__name__)

# trailing /routers/<id> of an override url
ROUTER_SUFFIX = re.compile(r"/routers/[^/]+$")


@dataclass(frozen=True)
class OTPConnection:
    """
    Connection descriptor for an OTP 1.x server.

    url overrides hostname/port/ssl/router entirely and is the router endpoint
    itself, e.g. for a server behind a proxy:
        OTPConnection(url="https://example.org/otp/routers/hsl")
    """

    hostname: str = "localhost"
    router: str = "default"
    port: int = 8080
    ssl: bool = False
    url: Optional[str] = None

    def __post_init__(self):
        if not self.router:
            raise ValueError("router name cannot be empty")
        if self.url is None:
            if not self.hostname:
                raise ValueError("hostname cannot be empty")
            if not 0 < int(self.port) < 65536:
                raise ValueError(f"port must be between 1 and 65535, got {self.port}")

    @property
    def scheme(self) -> str:
        return "https" if self.ssl else "http"

    def root_url(self) -> str:
        """http://localhost:8080 (or the override url without its router part)"""
        if self.url is not None:
            return self.base_url()
        return f"{self.scheme}://{self.hostname}:{self.port}"

    def base_url(self) -> str:
        """http://localhost:8080/otp"""
        if self.url is not None:
            return ROUTER_SUFFIX.sub("", self.url.rstrip("/"))
        return f"{self.root_url()}/otp"

    def router_url(self) -> str:
        """http://localhost:8080/otp/routers/default"""
        if self.url is not None:
            return self.url.rstrip("/")
        return f"{self.base_url()}/routers/{self.router}"

    def check(self, timeout: float = 10, session: Optional[requests.Session] = None) -> "OTPConnection":
        """
        Ask OTP for the router. Returns self if it answers 200,
        raises OTPConnectionError otherwise (including when nothing is listening).
        """
        url = self.router_url()
        getter = session.get if session is not None else requests.get
        try:
            response = getter(url, timeout=timeout, headers={"Accept": "application/json"})
        except requests.RequestException as e:
            raise OTPConnectionError(f"Router {url} does not exist: {e}") from e

        if response.status_code != 200:
            raise OTPConnectionError(
                f"Router {url} does not exist (HTTP {response.status_code})"
            )

        logger.info("Router %s exists", url)
        return self


def connect(hostname: str = "localhost", router: str = "default", url: Optional[str] = None,
            port: int = 8080, ssl: bool = False, check: bool = True,
            timeout: float = 10) -> OTPConnection:
    """
    Build a connection and, by default, confirm the router is up.
    """
    connection = OTPConnection(hostname=hostname, router=router, port=port, ssl=ssl, url=url)
    if check:
        connection.check(timeout=timeout)
    return connection
