"""
Planning State
Discretized footstep state used as vertex key of the search graph,
plus the pure discretization helpers it is built with.
"""

import math
from dataclasses import dataclass
from enum import IntEnum

UINT32_MASK = 0xFFFFFFFF
TWO_PI = 2.0 * math.pi

class Leg(IntEnum):
    """Foot identifier. Integer values feed the state hash."""
    RIGHT = 0
    LEFT = 1
    NONE = 2

    def opposite(self) -> 'Leg':
        if self == Leg.RIGHT:
            return Leg.LEFT
        if self == Leg.LEFT:
            return Leg.RIGHT
        return Leg.NONE

@dataclass(frozen=True)
class Pose:
    """Continuous foot or robot pose (meters, radians)."""
    x: float
    y: float
    theta: float
    leg: Leg = Leg.NONE

    def distance_to(self, other: 'Pose') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_close(self, other: 'Pose', tolerance: float = 1e-6,
                 angle_tolerance: float = 1e-6) -> bool:
        """Compare positions and headings, headings modulo a full turn."""
        return (self.leg == other.leg and
                self.distance_to(other) <= tolerance and
                abs(angle_diff(self.theta, other.theta)) <= angle_tolerance)

def normalize_angle(theta: float) -> float:
    """Wrap an angle to (-pi, pi]."""
    theta = math.fmod(theta, TWO_PI)
    if theta <= -math.pi:
        theta += TWO_PI
    elif theta > math.pi:
        theta -= TWO_PI
    return theta

def angle_diff(a: float, b: float) -> float:
    """Signed shortest difference a - b in (-pi, pi]."""
    return normalize_angle(a - b)

def to_cell(value: float, cell_size: float) -> int:
    """Round a continuous length to the nearest cell index."""
    return int(math.floor(value / cell_size + 0.5))

def cell_to_value(cell: int, cell_size: float) -> float:
    return cell * cell_size

def angle_to_cell(theta: float, num_angle_bins: int) -> int:
    """Bucket an angle to the nearest bin center, wrapping over a full turn."""
    theta = math.fmod(theta, TWO_PI)
    if theta < 0.0:
        theta += TWO_PI
    bin_size = TWO_PI / num_angle_bins
    return int(math.floor(theta / bin_size + 0.5)) % num_angle_bins

def cell_to_angle(cell: int, num_angle_bins: int) -> float:
    return (cell % num_angle_bins) * TWO_PI / num_angle_bins

def int_hash(key: int) -> int:
    """32-bit integer mixing hash (shift/add/xor cascade)."""
    key &= UINT32_MASK
    key = (key + (key << 12)) & UINT32_MASK
    key ^= key >> 22
    key = (key + (key << 4)) & UINT32_MASK
    key ^= key >> 9
    key = (key + (key << 10)) & UINT32_MASK
    key ^= key >> 2
    key = (key + (key << 7)) & UINT32_MASK
    key ^= key >> 12
    return key

def state_hash_tag(x: int, y: int, theta: int, leg: int, max_hash_size: int) -> int:
    combined = ((int_hash(x) << 3) + (int_hash(y) << 2) +
                (int_hash(theta) << 1) + int_hash(leg)) & UINT32_MASK
    return int_hash(combined) % max_hash_size

class PlanningState:
    """
    Discretized footstep placement (x, y, theta cell, leg).

    The hash tag is fixed at construction and bounded by max_hash_size.
    Equal states share a hash tag; a shared hash tag does not imply equality.
    The only mutation allowed is the one-time id binding done by the
    environment when the state enters the search graph.
    """

    __slots__ = ('_x', '_y', '_theta', '_leg', '_id', '_hash_tag')

    def __init__(self, x: int, y: int, theta: int, leg: Leg, max_hash_size: int):
        self._x = int(x)
        self._y = int(y)
        self._theta = int(theta)
        self._leg = Leg(leg)
        self._id = -1
        self._hash_tag = state_hash_tag(self._x, self._y, self._theta,
                                        int(self._leg), max_hash_size)

    @classmethod
    def from_pose(cls, pose: Pose, cell_size: float, num_angle_bins: int,
                  max_hash_size: int) -> 'PlanningState':
        return cls(to_cell(pose.x, cell_size),
                   to_cell(pose.y, cell_size),
                   angle_to_cell(pose.theta, num_angle_bins),
                   pose.leg,
                   max_hash_size)

    @property
    def x(self) -> int:
        return self._x

    @property
    def y(self) -> int:
        return self._y

    @property
    def theta(self) -> int:
        return self._theta

    @property
    def leg(self) -> Leg:
        return self._leg

    @property
    def id(self) -> int:
        return self._id

    @property
    def hash_tag(self) -> int:
        return self._hash_tag

    def bind_id(self, state_id: int):
        if self._id != -1 and self._id != state_id:
            raise ValueError(f"State {self!r} already bound to id {self._id}")
        self._id = int(state_id)

    def to_pose(self, cell_size: float, num_angle_bins: int) -> Pose:
        return Pose(cell_to_value(self._x, cell_size),
                    cell_to_value(self._y, cell_size),
                    cell_to_angle(self._theta, num_angle_bins),
                    self._leg)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PlanningState):
            return NotImplemented
        if self._hash_tag != other._hash_tag:
            return False
        return (self._x == other._x and self._y == other._y and
                self._theta == other._theta and self._leg == other._leg)

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return self._hash_tag

    def __repr__(self) -> str:
        return (f"PlanningState(x={self._x}, y={self._y}, theta={self._theta}, "
                f"leg={self._leg.name}, id={self._id})")
