import os
import sys
import argparse
import logging
import json
import numpy as np
from pathlib import Path
from typing import Dict, Any

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from footstep_planning.environment import OccupancyMap, Pose
from footstep_planning.errors import ConfigurationError
from footstep_planning.integration import FootstepPlanner
from footstep_planning.utils import setup_logging, load_config, validate_config, FootstepVisualizer

class FootstepPlanningRunner:

    def __init__(self, config_path: str, map_path: str, resolution: float,
                 origin: tuple):
        self.config = load_config(config_path)

        setup_logging(self.config.logging)
        self.logger = logging.getLogger(__name__)

        errors = validate_config(self.config)
        if errors:
            raise ConfigurationError(f"Invalid configuration: {errors}", errors)

        self.grid_map = self._load_map(Path(map_path), resolution, origin)
        self.planner = FootstepPlanner(self.config.planner)

        self.logger.info("Footstep planning runner initialized")

    def _load_map(self, map_path: Path, resolution: float, origin: tuple) -> OccupancyMap:

        if not map_path.exists():
            raise FileNotFoundError(f"Map file not found: {map_path}")

        grid = np.load(map_path)
        if grid.dtype == bool:
            grid_map = OccupancyMap(grid, resolution, origin)
        else:
            grid_map = OccupancyMap.from_occupancy_values(grid, resolution, origin)

        self.logger.info(f"Map loaded from {map_path}: {grid_map.size()} cells")
        return grid_map

    def run(self, start: Pose, goal: Pose) -> Dict[str, Any]:

        self.planner.set_map(self.grid_map)
        result = self.planner.plan_between(start, goal)

        return {
            'status': result.status.value,
            'message': result.message,
            'cost': result.cost if result else None,
            'expanded_states': result.expanded_states,
            'final_epsilon': result.final_epsilon if result else None,
            'planning_time': result.planning_time,
            'footsteps': [
                {'x': f.x, 'y': f.y, 'theta': f.theta, 'leg': f.leg.name}
                for f in result.footsteps
            ],
            'statistics': self.planner.get_planning_statistics(),
        }

    def visualize(self, output_dir: str):

        vis_config = dict(self.config.visualization)
        vis_config['save_plots'] = True
        vis_config['output_dir'] = output_dir

        visualizer = FootstepVisualizer(vis_config, self.config.planner.get('foot', {}))
        visualizer.plot_plan(self.grid_map, self.planner.path,
                             start_feet=self.planner.get_start_feet(),
                             goal_feet=self.planner.get_goal_feet(),
                             expanded_states=self.planner.get_expanded_states())

def main():
    parser = argparse.ArgumentParser(description='Plan footsteps on an occupancy grid')
    parser.add_argument('--config', type=str, default='config/footstep_planner.yaml',
                       help='Configuration file path')
    parser.add_argument('--map', type=str, required=True,
                       help='Occupancy grid (.npy, bool or 0..100 values, rows index y)')
    parser.add_argument('--resolution', type=float, default=0.05,
                       help='Map resolution in meters per cell')
    parser.add_argument('--origin', type=float, nargs=2, default=[0.0, 0.0],
                       help='World coordinates of the map origin')
    parser.add_argument('--start', type=float, nargs=3, required=True,
                       metavar=('X', 'Y', 'THETA'), help='Start robot pose')
    parser.add_argument('--goal', type=float, nargs=3, required=True,
                       metavar=('X', 'Y', 'THETA'), help='Goal robot pose')
    parser.add_argument('--output', type=str, default=None,
                       help='Write the result as JSON to this file')
    parser.add_argument('--visualize', type=str, default=None, metavar='DIR',
                       help='Save a plot of the plan to this directory')

    args = parser.parse_args()

    runner = FootstepPlanningRunner(args.config, args.map, args.resolution, tuple(args.origin))
    results = runner.run(Pose(*args.start), Pose(*args.goal))

    if args.output:
        output_file = Path(args.output)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w') as f:
            json.dump(results, f, indent=2, default=str)

    if args.visualize and runner.planner.path:
        runner.visualize(args.visualize)

    print("\nFOOTSTEP PLAN SUMMARY")
    print("=" * 50)
    print(f"Status: {results['status']} ({results['message']})")
    if results['cost'] is not None:
        print(f"Cost: {results['cost']:.3f}")
        print(f"Footsteps: {len(results['footsteps'])}")
        print(f"Final epsilon: {results['final_epsilon']:.2f}")
    print(f"Expanded states: {results['expanded_states']}")
    print(f"Planning time: {results['planning_time']:.3f}s")

    for footstep in results['footsteps']:
        print(f"  {footstep['leg']:>5}: x={footstep['x']:.3f} y={footstep['y']:.3f} "
              f"theta={footstep['theta']:.3f}")

    return 0 if results['cost'] is not None else 1

if __name__ == "__main__":
    sys.exit(main())
