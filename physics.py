"""
2D Basketball Arcade Physics Engine
One ball, gravity + air friction, floor/wall/backboard collision, rim window.

Units are canvas pixels and ticks: one call to PhysicsEngine.update() is one
rendered frame, so gravity is px/tick² and velocities are px/tick.
"""

import numpy as np
from dataclasses import dataclass, field

# ──────────────────────────────────────────────
# Constants (pixels / ticks)
# ──────────────────────────────────────────────
COURT_WIDTH: float = 960.0
COURT_HEIGHT: float = 540.0
FLOOR_MARGIN: float = 50.0          # floor sits this far above the canvas bottom
GRAVITY: float = 0.6                # px/tick^2
AIR_FRICTION: float = 0.995         # horizontal velocity multiplier per tick
FLOOR_BOUNCE: float = 0.72          # vertical restitution on floor contact

# Floor contact
FLOOR_SLIDE: float = 0.9            # horizontal damping on each floor contact
VY_SNAP: float = 0.4
VX_SNAP: float = 0.2
CONTACT_EPSILON: float = 1e-6

# Side walls
LEFT_WALL_X: float = 40.0
RIGHT_WALL_INSET: float = 30.0
WALL_RESTITUTION: float = 0.7

# Hoop
RIM_RADIUS: float = 40.0
RIM_OFFSET_X: float = 190.0         # rim centre distance from the right edge
BACKBOARD_OFFSET_X: float = 120.0   # backboard distance from the right edge
BACKBOARD_RESTITUTION: float = 0.8
BACKBOARD_BAND: float = 70.0        # backboard spans rim_y ± this
RIM_INSET: float = 5.0
RIM_DEPTH: float = 60.0

# Rest / auto-reset
REST_TOLERANCE: float = 2.0
REST_SPEED: float = 0.3

# Ball and throw
BALL_RADIUS: float = 22.0
BALL_HOME_X: float = 180.0
THROW_POWER: float = 0.22
MAX_THROW_SPEED: float = 25.0
MIN_THROW_DISTANCE: float = 5.0

# Drag rectangle
DRAG_SIDE_MARGIN: float = 60.0
DRAG_FLOOR_MARGIN: float = 8.0
DRAG_TOP_FRACTION: float = 0.25


@dataclass(frozen=True)
class Court:
    """Playing field geometry and the global motion coefficients."""
    width: float = COURT_WIDTH
    height: float = COURT_HEIGHT
    floor: float = None             # height - FLOOR_MARGIN unless given
    gravity: float = GRAVITY
    friction: float = AIR_FRICTION
    bounce: float = FLOOR_BOUNCE

    def __post_init__(self):
        if self.floor is None:
            object.__setattr__(self, "floor", self.height - FLOOR_MARGIN)

    @classmethod
    def from_size(cls, width: float, height: float) -> "Court":
        return cls(width=float(width), height=float(height))

    @property
    def left_wall(self) -> float:
        return LEFT_WALL_X

    @property
    def right_wall(self) -> float:
        return self.width - RIGHT_WALL_INSET


@dataclass(frozen=True)
class Hoop:
    """Rim and backboard placement. The rim window is the scoring zone."""
    rim_x: float = COURT_WIDTH - RIM_OFFSET_X
    rim_y: float = COURT_HEIGHT / 3
    rim_radius: float = RIM_RADIUS
    backboard_x: float = COURT_WIDTH - BACKBOARD_OFFSET_X

    @classmethod
    def for_court(cls, court: Court) -> "Hoop":
        return cls(rim_x=court.width - RIM_OFFSET_X,
                   rim_y=court.height / 3,
                   rim_radius=RIM_RADIUS,
                   backboard_x=court.width - BACKBOARD_OFFSET_X)

    @property
    def window(self) -> tuple:
        """(x_min, x_max, y_min, y_max) of the rim window, all exclusive."""
        return (self.rim_x - self.rim_radius + RIM_INSET,
                self.rim_x + self.rim_radius - RIM_INSET,
                self.rim_y,
                self.rim_y + RIM_DEPTH)

    def contains(self, x: float, y: float) -> bool:
        x_min, x_max, y_min, y_max = self.window
        return x_min < x < x_max and y_min < y < y_max


@dataclass
class Ball:
    """Basketball with 2D position/velocity plus drag and flight flags."""
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    velocity: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    radius: float = BALL_RADIUS
    dragging: bool = False
    drag_origin: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    ready: bool = True
    scored: bool = False

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.velocity = np.array(self.velocity, dtype=float)
        self.drag_origin = np.array(self.drag_origin, dtype=float)

    def is_moving(self) -> bool:
        return bool(np.any(self.velocity != 0.0))


class PhysicsEngine:
    """Single-ball arcade physics with a fixed one-frame timestep."""

    def __init__(self, court: Court = None, hoop: Hoop = None):
        self.court = court if court is not None else Court()
        self.hoop = hoop if hoop is not None else Hoop.for_court(self.court)
        self.home = np.array([BALL_HOME_X, self.court.floor - BALL_RADIUS])
        self.events: list = []

    # ──────────────────────────────────────────
    # Ball lifecycle
    # ──────────────────────────────────────────
    def new_ball(self) -> Ball:
        return Ball(position=self.home.copy(), drag_origin=self.home.copy())

    def reset_ball(self, ball: Ball) -> None:
        """Return the ball to its home spot, at rest and grabbable."""
        ball.position = self.home.copy()
        ball.velocity = np.zeros(2)
        ball.drag_origin = self.home.copy()
        ball.dragging = False
        ball.ready = True
        ball.scored = False

    # ──────────────────────────────────────────
    # Drag and release
    # ──────────────────────────────────────────
    def clamp_drag(self, ball: Ball, x: float, y: float) -> None:
        """Move a dragged ball to the pointer, kept inside the drag rectangle."""
        c = self.court
        r = ball.radius
        ball.position = np.array([
            np.clip(x, DRAG_SIDE_MARGIN + r, c.width - r - DRAG_SIDE_MARGIN),
            np.clip(y, c.height * DRAG_TOP_FRACTION, c.floor - DRAG_FLOOR_MARGIN),
        ], dtype=float)

    def release(self, ball: Ball) -> bool:
        """
        Let go of a dragged ball, slingshot style.

        The throw impulse points opposite to the drag displacement:
            v = clip(-(position - drag_origin) * THROW_POWER, ±MAX_THROW_SPEED)
        A release closer than MIN_THROW_DISTANCE to the origin is a cancel and
        sends the ball home instead.

        Returns:
            True if the ball was thrown.
        """
        displacement = ball.position - ball.drag_origin
        thrown = float(np.hypot(displacement[0], displacement[1])) >= MIN_THROW_DISTANCE
        if thrown:
            ball.velocity = np.clip(-displacement * THROW_POWER,
                                    -MAX_THROW_SPEED, MAX_THROW_SPEED)
            ball.ready = False
        else:
            self.reset_ball(ball)
        ball.dragging = False
        return thrown

    # ──────────────────────────────────────────
    # Integration
    # ──────────────────────────────────────────
    def _is_supported(self, ball: Ball) -> bool:
        """True when the ball lies motionless on the floor.

        A sliding ball is not supported: it keeps micro-bouncing so the floor
        contact damps vx every other tick.
        """
        return (ball.velocity[0] == 0.0 and ball.velocity[1] == 0.0 and
                ball.position[1] + ball.radius >= self.court.floor - CONTACT_EPSILON)

    def _integrate(self, ball: Ball) -> None:
        # Resting contact: the floor carries the ball.
        if not self._is_supported(ball):
            ball.velocity[1] += self.court.gravity
        ball.position = ball.position + ball.velocity
        ball.velocity[0] *= self.court.friction

    # ──────────────────────────────────────────
    # Collisions
    # ──────────────────────────────────────────
    def _check_floor(self, ball: Ball) -> None:
        floor = self.court.floor
        if ball.position[1] + ball.radius <= floor:
            return
        impact_speed = abs(float(ball.velocity[1]))
        ball.position[1] = floor - ball.radius
        ball.velocity[1] *= -self.court.bounce
        ball.velocity[0] *= FLOOR_SLIDE

        # Snap tiny bounces to zero so the sequence terminates.
        if abs(ball.velocity[1]) < VY_SNAP:
            ball.velocity[1] = 0.0
        if abs(ball.velocity[0]) < VX_SNAP:
            ball.velocity[0] = 0.0

        if ball.velocity[0] == 0.0 and ball.velocity[1] == 0.0:
            ball.ready = True
        self.events.append({"type": "floor", "speed": impact_speed})

    def _check_walls(self, ball: Ball) -> None:
        r = ball.radius
        left = self.court.left_wall
        right = self.court.right_wall

        if ball.position[0] - r < left:
            impact_speed = abs(float(ball.velocity[0]))
            ball.position[0] = left + r
            ball.velocity[0] *= -WALL_RESTITUTION
            self.events.append({"type": "wall", "speed": impact_speed})

        if ball.position[0] + r > right:
            impact_speed = abs(float(ball.velocity[0]))
            ball.position[0] = right - r
            ball.velocity[0] *= -WALL_RESTITUTION
            self.events.append({"type": "wall", "speed": impact_speed})

    def _check_backboard(self, ball: Ball) -> None:
        hoop = self.hoop
        x, y = ball.position
        if (x + ball.radius > hoop.backboard_x and
                hoop.rim_y - BACKBOARD_BAND < y < hoop.rim_y + BACKBOARD_BAND):
            impact_speed = abs(float(ball.velocity[0]))
            ball.position[0] = hoop.backboard_x - ball.radius
            ball.velocity[0] *= -BACKBOARD_RESTITUTION
            self.events.append({"type": "backboard", "speed": impact_speed})

    def _check_rim_window(self, ball: Ball) -> None:
        """Count one basket per flight for a ball dropping through the rim window.

        Only the direction of travel is checked, not where the ball entered
        the window from.
        """
        if ball.scored or ball.velocity[1] <= 0.0:
            return
        if self.hoop.contains(ball.position[0], ball.position[1]):
            ball.scored = True
            self.events.append({"type": "score"})

    def _check_rest(self, ball: Ball) -> None:
        """Send a ball that has settled on the floor back home."""
        on_floor = ball.position[1] + ball.radius >= self.court.floor - REST_TOLERANCE
        if (on_floor and abs(ball.velocity[0]) < REST_SPEED and
                abs(ball.velocity[1]) < REST_SPEED):
            self.reset_ball(ball)

    # ──────────────────────────────────────────
    # Main Update Loop
    # ──────────────────────────────────────────
    def update(self, ball: Ball) -> None:
        """Advance the ball by one tick. Does nothing while it is being dragged."""
        self.events.clear()
        if ball.dragging:
            return
        self._integrate(ball)
        self._check_floor(ball)
        self._check_walls(ball)
        self._check_backboard(ball)
        self._check_rim_window(ball)
        self._check_rest(ball)

    def simulate(self, ball: Ball, max_ticks: int = 3000) -> int:
        """
        Run ticks until the ball is ready to be grabbed again or max_ticks is hit.

        Returns:
            Number of ticks run.
        """
        ticks = 0
        while ticks < max_ticks:
            self.update(ball)
            ticks += 1
            if ball.ready:
                break
        return ticks
