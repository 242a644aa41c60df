"""
Operational mode data types.

Mode, probe results, connection status, configuration and the statistics
snapshot returned by the coordinator.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Mode(str, Enum):
    """Operating modes of the server."""
    DOCS_ONLY = "docs_only"              # Static documentation data only
    LIVE_ONLY = "live_only"              # Live Drupal site only
    HYBRID = "hybrid"                    # Documentation plus live site
    SMART_FALLBACK = "smart_fallback"    # Hybrid when reachable, fallback otherwise

    @property
    def requires_live(self) -> bool:
        return self is not Mode.DOCS_ONLY


class ExecutionPath(str, Enum):
    """Which source serves a single tool call."""
    LIVE = "live"
    DOCS = "docs"
    HYBRID = "hybrid"


class ProbeFailure(str, Enum):
    """Why a connectivity probe did not succeed."""
    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    NETWORK = "network"
    AUTH = "auth"
    HTTP = "http"


MISSING_CONFIGURATION_ERROR = "Missing connection configuration"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProbeResult(BaseModel):
    """Outcome of a single health check against the live backend."""
    model_config = ConfigDict(frozen=True)

    connected: bool
    response_time_ms: Optional[float] = None
    capabilities: Optional[FrozenSet[str]] = None
    error: Optional[str] = None
    failure: Optional[ProbeFailure] = None

    @classmethod
    def success(cls, response_time_ms: float, capabilities: FrozenSet[str]) -> "ProbeResult":
        return cls(connected=True, response_time_ms=response_time_ms, capabilities=capabilities)

    @classmethod
    def failed(cls, failure: ProbeFailure, error: str) -> "ProbeResult":
        return cls(connected=False, failure=failure, error=error)


class ConnectionStatus(BaseModel):
    """
    Most recent probe outcome.

    Frozen: a probe replaces the whole record, readers never see a
    partially updated status.
    """
    model_config = ConfigDict(frozen=True)

    is_connected: bool = False
    last_tested: datetime = Field(default_factory=utc_now)
    response_time_ms: Optional[float] = None
    error: Optional[str] = None
    capabilities: Optional[FrozenSet[str]] = None
    failure_kind: Optional[ProbeFailure] = None

    @classmethod
    def from_probe(cls, result: ProbeResult, previous: Optional["ConnectionStatus"] = None) -> "ConnectionStatus":
        tested = utc_now()
        # last_tested never moves backwards, even if the wall clock does
        if previous is not None and tested < previous.last_tested:
            tested = previous.last_tested
        return cls(
            is_connected=result.connected,
            last_tested=tested,
            response_time_ms=result.response_time_ms,
            error=result.error,
            capabilities=result.capabilities,
            failure_kind=result.failure,
        )


class ModeConfiguration(BaseModel):
    """Settings the coordinator is constructed with."""
    model_config = ConfigDict(frozen=True)

    preferred_mode: Mode = Mode.SMART_FALLBACK
    fallback_mode: Mode = Mode.DOCS_ONLY
    max_retries: int = Field(3, ge=0)
    connection_timeout_ms: int = Field(10_000, gt=0)
    health_check_interval_ms: int = Field(60_000, gt=0)
    enable_auto_recovery: bool = True
    recovery_delay_ms: int = Field(5_000, ge=0)

    @model_validator(mode="after")
    def _fallback_must_work_offline(self) -> "ModeConfiguration":
        if self.fallback_mode.requires_live:
            raise ValueError(
                f"fallback_mode '{self.fallback_mode.value}' requires a live connection; "
                f"use '{Mode.DOCS_ONLY.value}'"
            )
        return self

    @property
    def connection_timeout(self) -> float:
        return self.connection_timeout_ms / 1000

    @property
    def health_check_interval(self) -> float:
        return self.health_check_interval_ms / 1000

    @property
    def recovery_delay(self) -> float:
        return self.recovery_delay_ms / 1000


class ModeStats(BaseModel):
    """Snapshot returned by get_mode_stats()."""
    current_mode: Mode
    preferred_mode: Mode
    fallback_mode: Mode
    uptime_ms: int
    status: ConnectionStatus
    reconnect_attempts: int
    max_retries: int
    retries_exhausted: bool
    monitoring: bool
    degraded: bool
    capabilities: List[str] = Field(default_factory=list)
