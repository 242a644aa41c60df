"""
Connectivity probe for the live Drupal backend.
"""

import asyncio
import time
from typing import Any, FrozenSet, Optional, Protocol

from drupal_mcp.core.modes.models import MISSING_CONFIGURATION_ERROR, ProbeFailure, ProbeResult
from drupal_mcp.utils.errors import BackendConnectionError, DrupalAPIError
from drupal_mcp.utils.logging import get_logger

logger = get_logger(__name__)

LIVE_CAPABILITY_TAGS: FrozenSet[str] = frozenset({"crud", "admin", "query"})


class HealthProbeBackend(Protocol):
    """Anything that can fetch minimal site status, e.g. DrupalClient."""

    async def health_probe(self, timeout: Optional[float] = None) -> Any:
        ...


class ConnectivityProbe:
    """
    Runs one health check and reports the outcome as a ProbeResult.

    Never raises for connectivity problems. An unconfigured backend is
    reported immediately without touching the network.
    """

    def __init__(
        self,
        backend: Optional[HealthProbeBackend],
        configured: bool,
        timeout: float = 10.0,
        capabilities: FrozenSet[str] = LIVE_CAPABILITY_TAGS
    ):
        self.backend = backend
        self.configured = configured
        self.timeout = timeout
        self.capabilities = capabilities

    async def run(self) -> ProbeResult:
        if not self.configured or self.backend is None:
            return ProbeResult.failed(ProbeFailure.NOT_CONFIGURED, MISSING_CONFIGURATION_ERROR)

        start_time = time.perf_counter()
        try:
            await asyncio.wait_for(self.backend.health_probe(timeout=self.timeout), timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._timed_out()
        except DrupalAPIError as e:
            kind = ProbeFailure.AUTH if e.status_code in (401, 403) else ProbeFailure.HTTP
            return ProbeResult.failed(kind, e.message)
        except BackendConnectionError as e:
            if e.details.get("timeout"):
                return self._timed_out()
            return ProbeResult.failed(ProbeFailure.NETWORK, e.message)
        except OSError as e:
            return ProbeResult.failed(ProbeFailure.NETWORK, str(e))
        except Exception as e:
            logger.warning(f"Unexpected error probing live backend: {e}")
            return ProbeResult.failed(ProbeFailure.HTTP, str(e))

        response_time = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Live backend probe succeeded in {response_time:.1f}ms")
        return ProbeResult.success(response_time, self.capabilities)

    def _timed_out(self) -> ProbeResult:
        return ProbeResult.failed(
            ProbeFailure.TIMEOUT,
            f"Connection timed out after {int(self.timeout * 1000)}ms"
        )
