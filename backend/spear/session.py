"""
Simulation sessions.

The HTTP layer (or any other driver) never touches simulators directly
by scenario id. It creates a session, gets back an opaque handle, and
passes the handle on every call. The store owns the simulators; the core
modules hold no global state.
"""

from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .attenuation import AttenuationTable
from .engine import EngagementSimulator, PlatformSource
from .errors import SessionNotFound
from .scenario import ScenarioConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationHandle:
    session_id: str

    def __str__(self) -> str:
        return self.session_id


class SessionStore:
    """In-memory map of session id -> simulator. Single-threaded."""

    def __init__(self, platforms: PlatformSource, attenuation: AttenuationTable, raster_dir=None):
        self.platforms = platforms
        self.attenuation = attenuation
        self.raster_dir = raster_dir
        self._sessions: Dict[str, EngagementSimulator] = {}

    def create(
        self,
        scenario: ScenarioConfig,
        time_step: Optional[float] = None,
        seed: Optional[int] = None,
    ) -> SimulationHandle:
        simulator = EngagementSimulator.create(
            scenario,
            self.platforms,
            self.attenuation,
            time_step=time_step,
            seed=seed,
            raster_dir=self.raster_dir,
        )
        handle = SimulationHandle(uuid.uuid4().hex)
        self._sessions[handle.session_id] = simulator
        logger.info(f"Opened session {handle} for scenario {scenario.id}")
        return handle

    @staticmethod
    def _key(handle: Union[SimulationHandle, str]) -> str:
        if isinstance(handle, SimulationHandle):
            return handle.session_id
        return handle

    def get(self, handle: Union[SimulationHandle, str]) -> EngagementSimulator:
        key = self._key(handle)
        try:
            return self._sessions[key]
        except KeyError:
            raise SessionNotFound(key) from None

    def close(self, handle: Union[SimulationHandle, str]) -> None:
        key = self._key(handle)
        if self._sessions.pop(key, None) is None:
            raise SessionNotFound(key)
        logger.info(f"Closed session {key}")

    def list_sessions(self) -> List[str]:
        return list(self._sessions)

    def __contains__(self, handle: Union[SimulationHandle, str]) -> bool:
        return self._key(handle) in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
