"""
Footstep geometry and transition model.
Derives foot poses from a robot-center pose and applies parameterized
footsteps to discretized planning states.
"""

import math
from typing import List, Tuple

from footstep_planning.environment.planning_state import (
    Leg, Pose, PlanningState, to_cell, cell_to_angle
)

def foot_pose(robot_pose: Pose, side: Leg, foot_separation: float) -> Pose:
    """
    Pose of one foot of a robot standing at robot_pose.

    Args:
        robot_pose: Robot-center pose
        side: Leg.LEFT or Leg.RIGHT
        foot_separation: Lateral distance between both feet (meters)

    Returns:
        Foot pose offset perpendicular to the heading by half the separation
    """
    if side not in (Leg.LEFT, Leg.RIGHT):
        raise ValueError(f"Cannot derive a foot pose for leg {side!r}")

    shift_x = -math.sin(robot_pose.theta) * foot_separation / 2.0
    shift_y = math.cos(robot_pose.theta) * foot_separation / 2.0
    sign = 1.0 if side == Leg.LEFT else -1.0

    return Pose(robot_pose.x + sign * shift_x,
                robot_pose.y + sign * shift_y,
                robot_pose.theta,
                side)

def foot_marker_center(foot: Pose, origin_shift_x: float,
                       origin_shift_y: float) -> Tuple[float, float]:
    """Center of the foot rectangle; the lateral shift is mirrored for the right foot."""
    cos_theta = math.cos(foot.theta)
    sin_theta = math.sin(foot.theta)

    x_shift = cos_theta * origin_shift_x - sin_theta * origin_shift_y
    if foot.leg == Leg.LEFT:
        y_shift = sin_theta * origin_shift_x + cos_theta * origin_shift_y
    else:
        y_shift = sin_theta * origin_shift_x - cos_theta * origin_shift_y

    return foot.x + x_shift, foot.y + y_shift

class Footstep:
    """
    A step (x, y, theta) expressed in the frame of the supporting foot.

    The values describe a left swing foot placed relative to a right
    support foot; the right swing foot uses the mirrored step. Discrete
    offsets are precomputed for every orientation bin so that perform()
    and revert() are exact inverses on the discretized state space.
    """

    def __init__(self, x: float, y: float, theta: float, cell_size: float,
                 num_angle_bins: int, max_hash_size: int):
        self.x = x
        self.y = y
        self.theta = theta
        self.cell_size = cell_size
        self.num_angle_bins = num_angle_bins
        self.max_hash_size = max_hash_size

        bin_size = 2.0 * math.pi / num_angle_bins
        self.theta_cells = int(math.floor(theta / bin_size + 0.5))

        self._left_offsets: List[Tuple[int, int]] = []
        self._right_offsets: List[Tuple[int, int]] = []
        self._discretize()

    def _discretize(self):
        for angle_bin in range(self.num_angle_bins):
            angle = cell_to_angle(angle_bin, self.num_angle_bins)
            cos_theta = math.cos(angle)
            sin_theta = math.sin(angle)

            left_x = cos_theta * self.x - sin_theta * self.y
            left_y = sin_theta * self.x + cos_theta * self.y
            right_x = cos_theta * self.x + sin_theta * self.y
            right_y = sin_theta * self.x - cos_theta * self.y

            self._left_offsets.append((to_cell(left_x, self.cell_size),
                                       to_cell(left_y, self.cell_size)))
            self._right_offsets.append((to_cell(right_x, self.cell_size),
                                        to_cell(right_y, self.cell_size)))

    @property
    def step_width(self) -> float:
        return math.hypot(self.x, self.y)

    def perform(self, current: PlanningState) -> PlanningState:
        """Swing-foot state reached by executing this step from current."""
        if current.leg == Leg.RIGHT:
            offset_x, offset_y = self._left_offsets[current.theta]
            theta = current.theta + self.theta_cells
            leg = Leg.LEFT
        elif current.leg == Leg.LEFT:
            offset_x, offset_y = self._right_offsets[current.theta]
            theta = current.theta - self.theta_cells
            leg = Leg.RIGHT
        else:
            raise ValueError(f"Cannot step from a state without leg: {current!r}")

        return PlanningState(current.x + offset_x, current.y + offset_y,
                             theta % self.num_angle_bins, leg, self.max_hash_size)

    def revert(self, current: PlanningState) -> PlanningState:
        """Support-foot state from which this step leads to current."""
        if current.leg == Leg.LEFT:
            theta = (current.theta - self.theta_cells) % self.num_angle_bins
            offset_x, offset_y = self._left_offsets[theta]
            leg = Leg.RIGHT
        elif current.leg == Leg.RIGHT:
            theta = (current.theta + self.theta_cells) % self.num_angle_bins
            offset_x, offset_y = self._right_offsets[theta]
            leg = Leg.LEFT
        else:
            raise ValueError(f"Cannot revert a step onto a state without leg: {current!r}")

        return PlanningState(current.x - offset_x, current.y - offset_y,
                             theta, leg, self.max_hash_size)

    def __repr__(self) -> str:
        return f"Footstep(x={self.x}, y={self.y}, theta={self.theta})"
