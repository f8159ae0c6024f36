"""Detection of an already-running instance of the same app."""

from __future__ import annotations

from marquee.models import ListenEndpoint
from marquee.runner.logging import RunnerLogComponent, get_logger
from marquee.runner.probe import PortProber
from marquee.runner.state import StateStore

logger = get_logger(RunnerLogComponent.GUARD)


class InstanceGuard:
    """Uses the persisted state plus a probe to find a live instance.

    There is no lock: two startups racing inside the probe window can both
    proceed, and the later one's URL file wins.
    """

    def __init__(self, store: StateStore, prober: PortProber):
        self.store: StateStore = store
        self.prober: PortProber = prober

    def detect_running(self) -> ListenEndpoint | None:
        """Return the endpoint of a live instance, or None.

        A partial record (PID or URL file missing) is not running. A complete
        record whose URL probes free is stale and is left for the new
        instance to overwrite.
        """
        record = self.store.read_record()
        if not record.complete:
            return None

        assert record.url is not None
        try:
            endpoint = ListenEndpoint.from_url(record.url)
        except ValueError as e:
            logger.debug(f"Ignoring unreadable URL file {self.store.url_path}: {e}")
            return None

        if self.prober.is_free(record.url):
            logger.debug(
                f"Stale state: pid {record.pid} recorded but {record.url} is free"
            )
            return None

        return endpoint
