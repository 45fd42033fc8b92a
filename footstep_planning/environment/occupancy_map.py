import numpy as np
import logging
import time
from typing import Dict, List, Tuple, Optional, Any
from dataclasses import dataclass
from scipy.ndimage import distance_transform_edt

@dataclass
class MapInfo:

    dimensions: Tuple[int, int]
    resolution: float
    origin: Tuple[float, float]
    frame_id: str
    total_cells: int
    occupied_cells: int
    free_cells: int

class OccupancyMap:
    """
    Binarized 2D occupancy grid.
    Rows index y, columns index x; cell (col, row) covers
    [origin + col * resolution, origin + (col + 1) * resolution).
    """

    def __init__(self, grid: np.ndarray, resolution: float,
                 origin: Tuple[float, float] = (0.0, 0.0),
                 frame_id: str = 'map'):
        self.logger = logging.getLogger(__name__)

        grid = np.asarray(grid)
        if grid.ndim != 2:
            raise ValueError(f"Occupancy grid must be 2D, got shape {grid.shape}")
        if resolution <= 0.0:
            raise ValueError(f"Map resolution must be positive, got {resolution}")

        self.binary_map = grid.astype(bool)
        self.resolution = float(resolution)
        self.origin = (float(origin[0]), float(origin[1]))
        self.frame_id = frame_id
        self.timestamp = time.time()

        self._distance_map: Optional[np.ndarray] = None

        self.logger.debug(f"Occupancy map {self.size()} at {self.resolution}m, "
                          f"origin {self.origin}, frame '{self.frame_id}'")

    @classmethod
    def from_occupancy_values(cls, data: np.ndarray, resolution: float,
                              origin: Tuple[float, float] = (0.0, 0.0),
                              frame_id: str = 'map',
                              occupied_threshold: int = 50,
                              unknown_is_occupied: bool = True) -> 'OccupancyMap':
        """Build from ROS-style occupancy values (-1 unknown, 0..100 probability)."""
        data = np.asarray(data)
        occupied = data >= occupied_threshold
        if unknown_is_occupied:
            occupied |= data < 0
        return cls(occupied, resolution, origin, frame_id)

    def size(self) -> Tuple[int, int]:
        """(rows, cols)"""
        return self.binary_map.shape

    @property
    def rows(self) -> int:
        return self.binary_map.shape[0]

    @property
    def cols(self) -> int:
        return self.binary_map.shape[1]

    def same_geometry(self, other: 'OccupancyMap') -> bool:
        return (self.resolution == other.resolution and
                self.size() == other.size())

    def cell_to_world(self, col: int, row: int) -> Tuple[float, float]:
        """World coordinates of the cell center."""
        x = self.origin[0] + (col + 0.5) * self.resolution
        y = self.origin[1] + (row + 0.5) * self.resolution
        return (x, y)

    def world_to_cell(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """(col, row) containing the point, or None outside the map."""
        col = int(np.floor((x - self.origin[0]) / self.resolution))
        row = int(np.floor((y - self.origin[1]) / self.resolution))

        if 0 <= col < self.cols and 0 <= row < self.rows:
            return (col, row)
        return None

    def contains(self, x: float, y: float) -> bool:
        return self.world_to_cell(x, y) is not None

    def is_occupied_at(self, x: float, y: float) -> bool:
        cell = self.world_to_cell(x, y)
        if cell is None:
            return True
        return bool(self.binary_map[cell[1], cell[0]])

    def is_free_at(self, x: float, y: float) -> bool:
        return not self.is_occupied_at(x, y)

    @property
    def distance_map(self) -> np.ndarray:
        """Distance (meters) from every cell center to the nearest occupied cell."""
        if self._distance_map is None:
            if self.binary_map.any():
                self._distance_map = distance_transform_edt(~self.binary_map) * self.resolution
            else:
                self._distance_map = np.full(self.binary_map.shape, np.inf)
        return self._distance_map

    def distance_at(self, x: float, y: float) -> float:
        """Distance to the nearest obstacle, negative outside the map."""
        cell = self.world_to_cell(x, y)
        if cell is None:
            return -1.0
        return float(self.distance_map[cell[1], cell[0]])

    def changed_cells(self, other: 'OccupancyMap') -> np.ndarray:
        """Cells whose occupancy flipped between this map and other."""
        if not self.same_geometry(other):
            raise ValueError(f"Cannot diff maps of different geometry: "
                             f"{self.size()}@{self.resolution} vs "
                             f"{other.size()}@{other.resolution}")
        return np.logical_xor(self.binary_map, other.binary_map)

    def occupied_cells(self) -> List[Tuple[int, int]]:
        """(col, row) of every occupied cell."""
        return [(int(col), int(row)) for row, col in np.argwhere(self.binary_map)]

    def get_info(self) -> MapInfo:

        occupied_cells = int(np.sum(self.binary_map))
        total_cells = self.rows * self.cols

        return MapInfo(
            dimensions=self.size(),
            resolution=self.resolution,
            origin=self.origin,
            frame_id=self.frame_id,
            total_cells=total_cells,
            occupied_cells=occupied_cells,
            free_cells=total_cells - occupied_cells
        )

    def export_map(self) -> Dict[str, Any]:

        return {
            'grid': self.binary_map.copy(),
            'resolution': self.resolution,
            'origin': self.origin,
            'frame_id': self.frame_id,
            'timestamp': self.timestamp
        }

    @classmethod
    def load_map(cls, map_data: Dict[str, Any]) -> 'OccupancyMap':

        return cls(map_data['grid'], map_data['resolution'],
                   tuple(map_data.get('origin', (0.0, 0.0))),
                   map_data.get('frame_id', 'map'))
