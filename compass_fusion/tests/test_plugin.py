"""Tests for compass action dispatch."""

import json
import pytest

from compass_fusion.core.types import ChannelKind, ListenerState
from compass_fusion.listener import CompassListener
from compass_fusion.plugin import CompassPlugin, PluginResult, ResultStatus
from compass_fusion.sensors import MockSensorSource


@pytest.fixture
def plugin(listener) -> CompassPlugin:
    return CompassPlugin(listener)


@pytest.fixture
def results() -> list:
    return []


class TestDispatch:
    """Tests for CompassPlugin.execute."""

    def test_unknown_action(self, plugin, results):
        """Unsupported actions are rejected without a response."""
        assert plugin.execute("calibrate", [], results.append) is False
        assert results == []

    def test_get_status_stopped(self, plugin, results):
        """getStatus reports the integer state."""
        assert plugin.execute("getStatus", [], results.append)
        assert results == [PluginResult(ResultStatus.OK, 0)]

    def test_start_sends_nothing(self, plugin, results):
        """start answers with no result and starts the listener."""
        assert plugin.execute("start", [], results.append)
        assert results == []
        assert plugin.listener.get_status() == ListenerState.STARTING

        plugin.execute("getStatus", [], results.append)
        assert results[0].message == 1

    def test_stop(self, plugin, results):
        """stop answers with no result and stops the listener."""
        plugin.execute("start")
        plugin.execute("stop", [], results.append)
        assert results == []
        assert plugin.listener.get_status() == ListenerState.STOPPED

    def test_get_heading_while_stopped(self, plugin, results):
        """getHeading returns the heading object immediately."""
        plugin.execute("getHeading", [], results.append)

        assert len(results) == 1
        assert results[0].status is ResultStatus.OK
        assert results[0].message == {
            "magneticHeading": 0.0,
            "trueHeading": 0.0,
            "headingAccuracy": 0,
            "timestamp": 0,
        }
        assert plugin.listener.get_status() == ListenerState.STARTING

    def test_get_heading_after_samples(self, plugin, source, clock, results):
        """Magnetic and true heading are identical."""
        plugin.execute("start")
        source.emit(ChannelKind.GRAVITY, (0.0, 0.0, 9.8), clock.now())
        source.emit(ChannelKind.MAGNETIC_FIELD, (-20.0, 0.0, -40.0), clock.now())
        plugin.execute("getHeading", [], results.append)

        heading = results[0].message
        assert heading["magneticHeading"] == pytest.approx(90.0)
        assert heading["trueHeading"] == heading["magneticHeading"]
        assert heading["headingAccuracy"] == 0
        assert heading["timestamp"] == clock.now()

    def test_get_heading_unavailable(self, config, clock, scheduler, results):
        """A failed start is reported as an IO error carrying state 3."""
        source = MockSensorSource(channels={ChannelKind.GRAVITY: [], ChannelKind.MAGNETIC_FIELD: []})
        plugin = CompassPlugin(CompassListener(source, config=config, clock=clock, scheduler=scheduler))

        plugin.execute("getHeading", [], results.append)
        assert results == [PluginResult(ResultStatus.IO_EXCEPTION, 3)]

    def test_get_heading_start_timeout(self, plugin, scheduler, results):
        """A start timeout produces a later error on the same responder."""
        plugin.execute("getHeading", [], results.append)
        scheduler.fire_all()

        assert len(results) == 2
        assert results[0].ok
        assert results[1] == PluginResult(ResultStatus.ERROR, "Compass listener failed to start.")

    def test_set_and_get_timeout(self, plugin, results):
        """setTimeout changes what getTimeout reports."""
        plugin.execute("setTimeout", [5000], results.append)
        assert results == []

        plugin.execute("getTimeout", [], results.append)
        assert results == [PluginResult(ResultStatus.OK, 5000)]

    def test_set_timeout_accepts_integral_float(self, plugin):
        """JSON numbers such as 5000.0 are accepted."""
        plugin.execute("setTimeout", [5000.0])
        assert plugin.listener.get_timeout() == 5000

    @pytest.mark.parametrize("args", [[], ["soon"], [12.5], [None], [True]])
    def test_set_timeout_bad_arguments(self, plugin, results, args):
        """Bad setTimeout arguments are reported and leave the timeout alone."""
        plugin.execute("setTimeout", args, results.append)

        assert len(results) == 1
        assert results[0].status is ResultStatus.JSON_EXCEPTION
        assert plugin.listener.get_timeout() == 30000


class TestLifecycleHooks:
    """Tests for host lifecycle notifications."""

    def test_on_destroy_stops(self, plugin, source):
        """Destroying the plugin stops the sensors."""
        plugin.execute("start")
        plugin.on_destroy()
        assert plugin.listener.get_status() == ListenerState.STOPPED
        assert source.unsubscribe_count == 2

    def test_on_reset_stops(self, plugin):
        """Resetting the plugin stops the sensors."""
        plugin.execute("start")
        plugin.on_reset()
        assert plugin.listener.get_status() == ListenerState.STOPPED


class TestPluginResult:
    """Tests for PluginResult serialization."""

    def test_to_json(self):
        """Results serialize to a status/message object."""
        result = PluginResult(ResultStatus.OK, {"magneticHeading": 12.5})
        assert json.loads(result.to_json()) == {
            "status": "OK",
            "message": {"magneticHeading": 12.5},
        }

    def test_ok_flag(self):
        assert PluginResult(ResultStatus.OK).ok
        assert not PluginResult(ResultStatus.ERROR, "x").ok
