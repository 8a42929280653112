"""
Error taxonomy.

Configuration errors (missing platform/scenario, bad grid, table not loaded)
fail fast and are surfaced to the caller. Nothing here is retried.
"""

from __future__ import annotations


class SpearError(Exception):
    """Base class for all engagement-simulator errors."""


class InvalidBounds(SpearError, ValueError):
    """Grid bounds with non-positive width or height."""


class ITUDataNotLoaded(SpearError, RuntimeError):
    """Attenuation lookup attempted before the ITU table was loaded."""


class PlatformNotFound(SpearError, LookupError):
    """A SAM or fighter config id could not be resolved from storage."""

    def __init__(self, kind: str, platform_id: str):
        self.kind = kind
        self.platform_id = platform_id
        super().__init__(f"{kind} platform config not found: {platform_id}")


class ScenarioNotFound(SpearError, LookupError):
    def __init__(self, scenario_id: str):
        self.scenario_id = scenario_id
        super().__init__(f"Scenario not found: {scenario_id}")


class SessionNotFound(SpearError, LookupError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Simulation session not found: {session_id}")
