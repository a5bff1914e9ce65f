"""
Server Tests — WebSocket command dispatch and frame serialization.

The async frame loop is not started here; commands are fed straight into
the dispatcher the /ws endpoint uses.
"""

import sys
import os
import json
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import server


@pytest.fixture(autouse=True)
def fresh_ctrl():
    server.ctrl.reset()
    server.ctrl.pending_events.clear()
    yield server.ctrl
    server.ctrl.reset()
    server.ctrl.pending_events.clear()


class TestCommands:

    def test_start_and_reset(self, fresh_ctrl):
        server._handle_command({"cmd": "start"})
        assert fresh_ctrl.playing
        server._handle_command({"cmd": "reset"})
        assert not fresh_ctrl.playing

    def test_pointer_throw(self, fresh_ctrl):
        server._handle_command({"cmd": "start"})
        server._handle_command({"cmd": "pointer_down", "x": 180, "y": 468})
        assert fresh_ctrl.ball.dragging
        server._handle_command({"cmd": "pointer_move", "x": 120, "y": 388})
        server._handle_command({"cmd": "pointer_up"})
        assert not fresh_ctrl.ball.dragging
        assert not fresh_ctrl.ball.ready
        assert fresh_ctrl.ball.velocity[0] == pytest.approx(13.2)

    def test_pointer_leave_releases(self, fresh_ctrl):
        server._handle_command({"cmd": "start"})
        server._handle_command({"cmd": "pointer_down", "x": 180, "y": 468})
        server._handle_command({"cmd": "pointer_leave"})
        assert not fresh_ctrl.ball.dragging

    @pytest.mark.parametrize("msg", [
        {"cmd": "pointer_down"},
        {"cmd": "pointer_down", "x": "abc", "y": 468},
        {"cmd": "pointer_down", "x": None, "y": 468},
        {"cmd": "unknown"},
        {},
    ])
    def test_malformed_commands_ignored(self, fresh_ctrl, msg):
        server._handle_command({"cmd": "start"})
        assert server._handle_command(msg) is None
        assert not fresh_ctrl.ball.dragging

    def test_get_state(self, fresh_ctrl):
        reply = json.loads(server._handle_command({"cmd": "get_state"}))
        assert reply["type"] == "state_json"
        assert json.loads(reply["data"]) == fresh_ctrl.snapshot()


class TestMessages:

    def test_init_geometry(self):
        msg = json.loads(server._build_init_message())
        assert msg["type"] == "init"
        assert msg["court"] == {"width": 960.0, "height": 540.0, "floor": 490.0}
        assert msg["hoop"]["rim_x"] == 770.0
        assert msg["ball_radius"] == 22.0
        assert msg["game_seconds"] == 30

    def test_frame_drains_events(self, fresh_ctrl):
        server._handle_command({"cmd": "start"})
        fresh_ctrl.step(1.0)
        frame = json.loads(server._build_frame_message())
        assert frame["type"] == "frame"
        assert frame["time_left"] == 29
        assert frame["playing"] is True
        assert {"type": "update_timer", "time_left": 29} in frame["events"]
        assert fresh_ctrl.pending_events == []

        frame = json.loads(server._build_frame_message())
        assert frame["events"] == []

    def test_frame_sounds(self, fresh_ctrl):
        fresh_ctrl.ball.position[:] = [70.0, 300.0]
        fresh_ctrl.ball.velocity[:] = [-10.0, 0.0]
        fresh_ctrl.ball.ready = False
        fresh_ctrl.step(0.0)
        frame = json.loads(server._build_frame_message())
        assert frame["sounds"] == [{"type": "wall", "speed": 9.95}]
