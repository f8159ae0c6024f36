"""Port selection for the server."""

from __future__ import annotations

from marquee.constants import MAX_PORT
from marquee.models import ListenEndpoint
from marquee.runner.errors import PortExhausted
from marquee.runner.logging import RunnerLogComponent, get_logger
from marquee.runner.probe import PortProber

logger = get_logger(RunnerLogComponent.PORTS)


class PortAllocator:
    """Picks the port a server will listen on.

    An explicit port is always honored (with a warning when it is taken).
    Otherwise ports are searched upward from the base port, one probe each,
    up to and including `max_port`.
    """

    def __init__(self, prober: PortProber, *, app_name: str = "app", max_port: int = MAX_PORT):
        self.prober: PortProber = prober
        self.app_name: str = app_name
        self.max_port: int = max_port

    def _is_free(self, host: str, port: int) -> bool:
        return self.prober.is_endpoint_free(ListenEndpoint(host=host, port=port))

    def allocate(self, requested: int | None, base_port: int, host: str) -> int:
        """Return the port to bind.

        Raises:
            PortExhausted: If no requested port was given and every port from
                `base_port` to `max_port` is in use.
        """
        if requested is not None:
            if not self._is_free(host, requested):
                logger.warning(
                    f"Port {requested} is already in use. "
                    "Please try another or don't use -p, for auto-port"
                )
            return requested

        for port in range(base_port, self.max_port + 1):
            logger.info(f"Trying to start {self.app_name} on Port {port}")
            if self._is_free(host, port):
                return port

        raise PortExhausted(host, base_port, self.max_port)
