import math
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as patches
import logging
from typing import List, Dict, Optional, Any, Tuple
from pathlib import Path

from footstep_planning.environment.footstep import foot_marker_center
from footstep_planning.environment.occupancy_map import OccupancyMap
from footstep_planning.environment.planning_state import Leg, Pose

class FootstepVisualizer:

    def __init__(self, config: Dict[str, Any], foot_config: Optional[Dict[str, Any]] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.figure_size = tuple(config.get('figure_size', (8, 8)))
        self.dpi = config.get('dpi', 100)
        self.save_plots = config.get('save_plots', False)
        self.output_dir = Path(config.get('output_dir', 'plots'))
        self.show_expanded_states = config.get('show_expanded_states', True)

        foot = foot_config or {}
        self.foot_size_x = foot.get('size', {}).get('x', 0.16)
        self.foot_size_y = foot.get('size', {}).get('y', 0.06)
        self.origin_shift_x = foot.get('origin_shift', {}).get('x', 0.02)
        self.origin_shift_y = foot.get('origin_shift', {}).get('y', 0.0)

        self.colors = {
            'left': '#2ca02c',
            'right': '#d62728',
            'start': '#1f77b4',
            'goal': '#ff7f0e',
            'expanded': '#9467bd',
            'changed': '#e377c2',
        }

        plt.style.use(config.get('plot_style', 'default'))

        if self.save_plots:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        self.logger.info("Footstep Visualizer initialized")

    def footprint_corners(self, foot: Pose) -> np.ndarray:
        """Corners of the foot rectangle in world coordinates, counter-clockwise."""
        center_x, center_y = foot_marker_center(foot, self.origin_shift_x, self.origin_shift_y)
        cos_theta = math.cos(foot.theta)
        sin_theta = math.sin(foot.theta)

        half_x = self.foot_size_x / 2.0
        half_y = self.foot_size_y / 2.0
        corners = []
        for corner_x, corner_y in ((-half_x, -half_y), (half_x, -half_y),
                                   (half_x, half_y), (-half_x, half_y)):
            corners.append((center_x + cos_theta * corner_x - sin_theta * corner_y,
                            center_y + sin_theta * corner_x + cos_theta * corner_y))
        return np.array(corners)

    def complete_footsteps(self, path: List[Pose],
                           start_feet: Optional[Tuple[Pose, Pose]] = None,
                           goal_feet: Optional[Tuple[Pose, Pose]] = None) -> List[Pose]:
        """Path with the start and goal feet it does not contain added at its ends."""
        footsteps = list(path)
        if not footsteps:
            return footsteps

        if start_feet is not None:
            missing = [foot for foot in start_feet if foot.leg != footsteps[0].leg]
            footsteps = missing[:1] + footsteps
        if goal_feet is not None:
            missing = [foot for foot in goal_feet if foot.leg != footsteps[-1].leg]
            footsteps = footsteps + missing[:1]

        return footsteps

    def plot_map(self, ax, grid_map: OccupancyMap):
        rows, cols = grid_map.size()
        origin_x, origin_y = grid_map.origin
        extent = [origin_x, origin_x + cols * grid_map.resolution,
                  origin_y, origin_y + rows * grid_map.resolution]
        ax.imshow(grid_map.binary_map, origin='lower', extent=extent,
                  cmap='Greys', vmin=0, vmax=1, interpolation='nearest')

    def plot_footstep(self, ax, foot: Pose, color: Optional[str] = None, alpha: float = 0.6):
        if color is None:
            color = self.colors['left'] if foot.leg == Leg.LEFT else self.colors['right']
        polygon = patches.Polygon(self.footprint_corners(foot), closed=True,
                                  facecolor=color, edgecolor='black', alpha=alpha)
        ax.add_patch(polygon)

    def plot_plan(self, grid_map: OccupancyMap, path: List[Pose],
                  start_feet: Optional[Tuple[Pose, Pose]] = None,
                  goal_feet: Optional[Tuple[Pose, Pose]] = None,
                  expanded_states: Optional[List[Pose]] = None,
                  changed_states: Optional[List[Pose]] = None,
                  save_name: str = 'footstep_plan.png') -> plt.Figure:

        fig, ax = plt.subplots(figsize=self.figure_size, dpi=self.dpi)

        self.plot_map(ax, grid_map)

        if expanded_states and self.show_expanded_states:
            ax.scatter([s.x for s in expanded_states], [s.y for s in expanded_states],
                       s=2, c=self.colors['expanded'], alpha=0.4, label='Expanded')

        if changed_states:
            ax.scatter([s.x for s in changed_states], [s.y for s in changed_states],
                       s=4, c=self.colors['changed'], marker='s', alpha=0.3, label='Changed')

        for foot in self.complete_footsteps(path, start_feet, goal_feet):
            self.plot_footstep(ax, foot)

        if start_feet is not None:
            for foot in start_feet:
                self.plot_footstep(ax, foot, self.colors['start'], alpha=0.3)
        if goal_feet is not None:
            for foot in goal_feet:
                self.plot_footstep(ax, foot, self.colors['goal'], alpha=0.3)

        ax.set_xlabel('X (meters)')
        ax.set_ylabel('Y (meters)')
        ax.set_title(f'Footstep Plan ({len(path)} steps)')
        ax.set_aspect('equal')
        if expanded_states or changed_states:
            ax.legend(loc='upper right')

        if self.save_plots:
            output_path = self.output_dir / save_name
            fig.savefig(output_path, bbox_inches='tight')
            self.logger.info(f"Plan plot saved to {output_path}")

        return fig
