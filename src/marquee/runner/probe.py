"""Liveness probe used to infer whether a URL has a listener."""

from __future__ import annotations

import httpx

from marquee.constants import PROBE_TIMEOUT
from marquee.models import ListenEndpoint
from marquee.runner.logging import RunnerLogComponent, get_logger

logger = get_logger(RunnerLogComponent.PROBE)


class PortProber:
    """Decides whether a URL is free by trying to open an HTTP request to it.

    Only a refused connection counts as free. A response of any kind, a
    protocol error, or a timeout after connecting means something is
    listening. The response body is never read.
    """

    def __init__(self, timeout: float = PROBE_TIMEOUT):
        self.timeout: float = timeout

    def is_free(self, url: str) -> bool:
        # Wildcard hosts (0.0.0.0, ::) are probed on loopback.
        try:
            url = ListenEndpoint.from_url(url).probe_url
        except ValueError:
            pass

        try:
            # trust_env=False: an HTTP(S)_PROXY must not answer for localhost.
            with httpx.Client(timeout=self.timeout, trust_env=False) as client:
                with client.stream("GET", url):
                    pass
        except httpx.ConnectError as e:
            logger.debug(f"{url} refused connection ({e}); port is free")
            return True
        except httpx.HTTPError as e:
            logger.debug(f"{url} accepted a connection ({type(e).__name__}); port is in use")
            return False
        logger.debug(f"{url} answered; port is in use")
        return False

    def is_endpoint_free(self, endpoint: ListenEndpoint) -> bool:
        return self.is_free(endpoint.probe_url)
