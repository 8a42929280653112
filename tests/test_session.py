"""
Tests for simulation sessions.
"""

import pytest

from spear.errors import SessionNotFound
from spear.session import SessionStore, SimulationHandle


@pytest.fixture
def sessions(platform_store, attenuation):
    return SessionStore(platform_store, attenuation)


class TestSessionStore:

    def test_create_and_get(self, sessions, scenario):
        handle = sessions.create(scenario)

        assert isinstance(handle, SimulationHandle)
        assert handle in sessions
        assert sessions.get(handle) is sessions.get(handle.session_id)
        assert len(sessions) == 1

    def test_sessions_are_independent(self, sessions, scenario):
        a = sessions.create(scenario)
        b = sessions.create(scenario)
        assert a != b

        sessions.get(a).advance_simulation_time_step()
        assert sessions.get(a).get_time_elapsed() == 0.5
        assert sessions.get(b).get_time_elapsed() == 0.0

    def test_unknown_session(self, sessions):
        with pytest.raises(SessionNotFound):
            sessions.get("missing")

    def test_close(self, sessions, scenario):
        handle = sessions.create(scenario)
        sessions.close(handle)

        assert handle not in sessions
        assert sessions.list_sessions() == []
        with pytest.raises(SessionNotFound):
            sessions.close(handle)

    def test_time_step_passed_through(self, sessions, scenario):
        handle = sessions.create(scenario, time_step=1.0)
        assert sessions.get(handle).time_step == 1.0
