"""
HoopsController — Layer 2 (Game Logic)

Owns the ball, the timed game session and the input-facing API.
Communicates with Layer 3 (server.py) via two queues:
  - pending_events  : session notifications (update_score, update_timer, game_over)
  - physics_events  : contact events for sound playback

Layer 3 calls:
  ctrl.begin_drag / update_drag / end_drag   — pointer down / move / up+leave
  ctrl.start() / ctrl.reset()                — buttons
  ctrl.step(dt)                              — one physics tick + countdown, every frame
  ctrl.snapshot()                            — read-only state for drawing
"""

import json
import math

from physics import PhysicsEngine, Ball, Court, Hoop


# ── Status messages ───────────────────────────────────────────────────────────
READY_MSG = "Ready! Drag the ball to line up a shot."
START_MSG = "Timer started! Shoot fast to rack up points."


class Countdown:
    """Repeating one-second timer driven by frame time. At most one runs."""

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self.running = False
        self._elapsed = 0.0

    def start(self) -> bool:
        if self.running:
            return False
        self.running = True
        self._elapsed = 0.0
        return True

    def stop(self) -> None:
        self.running = False
        self._elapsed = 0.0

    def advance(self, dt: float) -> int:
        """Accumulate dt seconds; return how many whole intervals fired."""
        if not self.running or dt <= 0:
            return 0
        self._elapsed += dt
        fired = int(self._elapsed // self.interval)
        self._elapsed -= fired * self.interval
        return fired


class HoopsController:
    """Layer 2: game-session state machine + physics orchestration."""

    # ── Class-level constants ─────────────────────────────────────────────────
    GAME_SECONDS       = 30
    COUNTDOWN_INTERVAL = 1.0
    GRAB_MARGIN        = 8.0
    PATH_MAX_POINTS    = 400

    # ── Constructor ───────────────────────────────────────────────────────────

    def __init__(self, court: Court = None, hoop: Hoop = None):
        # Physics
        self.engine = PhysicsEngine(court, hoop)
        self._sim_engine = PhysicsEngine(self.engine.court, self.engine.hoop)
        self.ball: Ball = self.engine.new_ball()

        # Session
        self.score     = 0
        self.time_left = self.GAME_SECONDS
        self.playing   = False
        self.countdown = Countdown(self.COUNTDOWN_INTERVAL)

        self.status_msg = READY_MSG

        # Event queues
        self.pending_events: list[dict] = []   # L3 notifications
        self.physics_events: list[dict] = []   # contact sounds

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def step(self, dt_frame: float) -> None:
        """One physics tick plus dt_frame seconds of countdown. Called every frame."""
        self.physics_events.clear()

        self.engine.update(self.ball)
        for ev in self.engine.events:
            if ev["type"] == "score":
                self._on_score()
            else:
                self.physics_events.append(ev)

        for _ in range(self.countdown.advance(dt_frame)):
            self._on_countdown_tick()
            if not self.playing:
                break

    def _on_score(self) -> None:
        self.score += 1
        self.pending_events.append({"type": "update_score", "score": self.score})
        self.status_msg = f"Nice shot! Score: {self.score}"

    def _on_countdown_tick(self) -> None:
        self.time_left -= 1
        self.pending_events.append({"type": "update_timer",
                                    "time_left": max(self.time_left, 0)})
        if self.time_left <= 0:
            self.end_game()

    # ──────────────────────────────────────────────────────────────────────────
    # Session
    # ──────────────────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self.playing:
            return
        self._reset_session(keep_playing=True)
        self.playing = True
        self.countdown.start()
        self.status_msg = START_MSG
        print(f"[GAME] start  seconds={self.time_left}")

    def reset(self) -> None:
        """Back to Idle with a fresh score, full clock and the ball at home."""
        self._reset_session(keep_playing=False)
        print("[GAME] reset")

    def _reset_session(self, keep_playing: bool) -> None:
        self.score = 0
        self.time_left = self.GAME_SECONDS
        self.pending_events.append({"type": "update_score", "score": self.score})
        self.pending_events.append({"type": "update_timer", "time_left": self.time_left})
        self.engine.reset_ball(self.ball)
        self.status_msg = READY_MSG

        if not keep_playing:
            self.playing = False
            self.countdown.stop()

    def end_game(self) -> None:
        self.countdown.stop()
        self.playing = False
        self.status_msg = f"Game over! Final score: {self.score}"
        self.pending_events.append({
            "type":  "game_over",
            "score": self.score,
            "msg":   self.status_msg,
        })
        print(f"[GAME] over  score={self.score}")

    # ──────────────────────────────────────────────────────────────────────────
    # Pointer input
    # ──────────────────────────────────────────────────────────────────────────

    def begin_drag(self, x: float, y: float) -> None:
        """Grab the ball if the game is on, the ball is ready and the pointer is on it."""
        if not self.playing:
            return
        ball = self.ball
        dist = math.hypot(x - ball.position[0], y - ball.position[1])
        if dist > ball.radius + self.GRAB_MARGIN or not ball.ready:
            return
        ball.dragging = True
        ball.drag_origin = ball.position.copy()
        ball.position[0] = x
        ball.position[1] = y
        ball.scored = False

    def update_drag(self, x: float, y: float) -> None:
        if not self.ball.dragging:
            return
        self.engine.clamp_drag(self.ball, x, y)

    def end_drag(self) -> None:
        if not self.ball.dragging:
            return
        self.engine.release(self.ball)

    # ──────────────────────────────────────────────────────────────────────────
    # State for Layer 3
    # ──────────────────────────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        b = self.ball
        return {
            "ball": {
                "pos":         [round(float(b.position[0]), 3), round(float(b.position[1]), 3)],
                "radius":      b.radius,
                "dragging":    b.dragging,
                "drag_origin": [round(float(b.drag_origin[0]), 3),
                                round(float(b.drag_origin[1]), 3)],
                "ready":       b.ready,
            },
            "score":     self.score,
            "time_left": max(self.time_left, 0),
            "playing":   self.playing,
            "status":    self.status_msg,
        }

    def get_state_json(self) -> str:
        """Return the current snapshot as compact single-line JSON."""
        return json.dumps(self.snapshot(), separators=(',', ':'))

    # ──────────────────────────────────────────────────────────────────────────
    # Headless throw simulation
    # ──────────────────────────────────────────────────────────────────────────

    def simulate_throw(self, dx: float, dy: float, max_ticks: int = 3000) -> dict:
        """
        Simulate one throw from home without touching the live session.

        The ball is dragged from home by (dx, dy) through the drag clamp and
        released, then ticked until it is grabbable again.

        Returns:
            dict with keys thrown, velocity, scored, ticks, path, final.
        """
        sim = self._sim_engine
        ball = sim.new_ball()
        ball.dragging = True
        ball.drag_origin = ball.position.copy()
        sim.clamp_drag(ball, ball.position[0] + dx, ball.position[1] + dy)
        thrown = sim.release(ball)
        velocity = [float(ball.velocity[0]), float(ball.velocity[1])]

        scored = False
        path = [(float(ball.position[0]), float(ball.position[1]))]
        ticks = 0
        while thrown and ticks < max_ticks:
            sim.update(ball)
            ticks += 1
            if any(ev["type"] == "score" for ev in sim.events):
                scored = True
            if len(path) < self.PATH_MAX_POINTS:
                path.append((float(ball.position[0]), float(ball.position[1])))
            if ball.ready:
                break

        return {
            "thrown":   thrown,
            "velocity": velocity,
            "scored":   scored,
            "ticks":    ticks,
            "path":     path,
            "final":    [float(ball.position[0]), float(ball.position[1])],
        }
