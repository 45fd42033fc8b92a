import os
import yaml
import json
import logging
import copy
from typing import Dict, List, Optional, Any
from pathlib import Path
from dataclasses import dataclass, field, fields

from footstep_planning.environment.heuristics import HEURISTIC_TYPES
from footstep_planning.search import SEARCH_ENGINES

DEFAULT_PLANNER_CONFIG: Dict[str, Any] = {
    'heuristic_type': 'EuclideanHeuristic',
    'planner_type': 'ARAPlanner',
    'max_hash_size': 65536,
    'accuracy': {
        'cell_size': 0.01,
        'num_angle_bins': 64,
        'collision_check': 2,
    },
    'step_cost': 0.05,
    'diff_angle_cost': 0.0,
    'search_until_first_solution': False,
    'allocated_time': 7.0,
    'forward_search': False,
    'initial_epsilon': 3.0,
    # 5000 cells at 64 orientation bins
    'changed_states_limit': 320000,
    'foot': {
        'size': {'x': 0.16, 'y': 0.06, 'z': 0.015},
        'separation': 0.095,
        'origin_shift': {'x': 0.02, 'y': 0.0},
        'max': {
            'step': {'x': 0.04, 'y': 0.04, 'theta': 0.349},
            'inverse': {'step': {'x': 0.04, 'y': 0.01, 'theta': 0.05}},
        },
    },
    'footsteps': {
        'x': [0.04, 0.02, 0.0, -0.02, 0.0, 0.02, 0.0, 0.0, 0.02],
        'y': [0.095, 0.095, 0.13, 0.095, 0.11, 0.12, 0.095, 0.095, 0.10],
        'theta': [0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.3, -0.05, 0.15],
    },
}

DEFAULT_LOGGING_CONFIG: Dict[str, Any] = {
    'level': 'INFO',
    'console_logging': True,
    'file_logging': False,
    'log_dir': 'logs',
    'max_file_size_mb': 10,
    'backup_count': 5,
    'components': {},
}

DEFAULT_VISUALIZATION_CONFIG: Dict[str, Any] = {
    'figure_size': [8, 8],
    'dpi': 100,
    'save_plots': False,
    'output_dir': 'plots',
    'show_expanded_states': True,
}

@dataclass
class SystemConfig:

    planner: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_PLANNER_CONFIG))
    logging: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_LOGGING_CONFIG))
    visualization: Dict[str, Any] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_VISUALIZATION_CONFIG))

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> 'SystemConfig':
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in config_data.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'planner': self.planner,
            'logging': self.logging,
            'visualization': self.visualization,
        }

def default_config_data() -> Dict[str, Any]:
    return SystemConfig().to_dict()

class ConfigManager:
    """
    Loads planner configuration files (YAML or JSON), merges them onto the
    built-in defaults and applies environment overrides.

    Overrides use the FOOTSTEP_PLANNER_ prefix followed by the key path, e.g.
    FOOTSTEP_PLANNER_PLANNER_ALLOCATED_TIME=2.5 or
    FOOTSTEP_PLANNER_PLANNER_ACCURACY_CELL_SIZE=0.02.
    """

    def __init__(self, config_dir: str = "config"):
        self.config_dir = Path(config_dir)
        self.logger = logging.getLogger(__name__)

        self._config_cache: Dict[str, SystemConfig] = {}

        self.default_configs = {
            'planner': self.config_dir / 'footstep_planner.yaml',
        }

        self.env_prefix = 'FOOTSTEP_PLANNER_'

        self.logger.info(f"Config Manager initialized: {config_dir}")

    def load_config(self, config_name: str = 'planner') -> SystemConfig:

        if config_name in self._config_cache:
            return self._config_cache[config_name]

        config_path = self.default_configs.get(config_name, self.config_dir / f"{config_name}.yaml")

        if config_path.exists():
            file_data = self._load_config_file(config_path)
        else:
            self.logger.warning(f"Config file not found: {config_path}, using defaults")
            file_data = {}

        system_config = self.build_config(file_data)

        self._config_cache[config_name] = system_config

        self.logger.info(f"Configuration loaded: {config_name}")
        return system_config

    def build_config(self, file_data: Dict[str, Any]) -> SystemConfig:
        """Defaults, then file contents, then environment overrides."""
        config_data = self._merge_configs(default_config_data(), file_data or {})
        config_data = self._apply_env_overrides(config_data)
        return SystemConfig.from_dict(config_data)

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:

        try:
            with open(config_path, 'r') as f:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    return yaml.safe_load(f) or {}
                elif config_path.suffix.lower() == '.json':
                    return json.load(f)
                else:
                    raise ValueError(f"Unsupported config format: {config_path.suffix}")

        except (OSError, ValueError, yaml.YAMLError) as e:
            self.logger.error(f"Failed to load config {config_path}: {e}")
            return {}

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:

        overrides = {}

        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                parts = key[len(self.env_prefix):].lower().split('_')
                config_path = self._resolve_key_path(parts, config_data)

                parsed_value = self._parse_env_value(value)

                self._set_nested_value(overrides, config_path, parsed_value)

        if overrides:
            config_data = self._merge_configs(config_data, overrides)
            self.logger.info(f"Applied {len(overrides)} environment overrides")

        return config_data

    def _resolve_key_path(self, parts: List[str], reference: Any) -> List[str]:
        """Rejoin underscore-split parts into the keys that exist in reference."""
        path = []
        index = 0
        while index < len(parts):
            matched = None
            if isinstance(reference, dict):
                # longest existing key first, so 'allocated_time' beats 'allocated'
                for end in range(len(parts), index, -1):
                    candidate = '_'.join(parts[index:end])
                    if candidate in reference:
                        matched = (candidate, end)
                        break

            if matched is None:
                path.append('_'.join(parts[index:]))
                break

            key, index = matched
            path.append(key)
            reference = reference[key]

        return path

    def _parse_env_value(self, value: str) -> Any:

        if value.lower() in ['true', 'false']:
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        try:
            return json.loads(value)
        except (json.JSONDecodeError, ValueError):
            pass

        return value

    def _set_nested_value(self, config: Dict[str, Any], path: List[str], value: Any):

        current = config
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[path[-1]] = value

    def _merge_configs(self, base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:

        result = copy.deepcopy(base_config)

        for key, value in override_config.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def save_config(self, config: SystemConfig, output_path: str):

        output_path = Path(output_path)

        with open(output_path, 'w') as f:
            if output_path.suffix.lower() in ['.yaml', '.yml']:
                yaml.dump(config.to_dict(), f, default_flow_style=False, indent=2)
            else:
                json.dump(config.to_dict(), f, indent=2)

        self.logger.info(f"Configuration saved to {output_path}")

def load_config(config_path: Optional[str] = None) -> SystemConfig:

    manager = ConfigManager()

    if config_path:
        custom_path = Path(config_path)
        if custom_path.exists():
            return manager.build_config(manager._load_config_file(custom_path))
        manager.logger.warning(f"Config file not found: {config_path}, using defaults")
        return manager.build_config({})

    return manager.load_config('planner')

def _positive(section: Dict[str, Any], key: str, errors: List[str], label: str):
    value = section.get(key)
    if value is not None and (not isinstance(value, (int, float)) or value <= 0):
        errors.append(f"{label} must be positive, got {value!r}")

def validate_planner_config(planner: Dict[str, Any]) -> List[str]:
    """Structural problems of a planner configuration; empty when usable."""
    errors = []

    heuristic_type = planner.get('heuristic_type', 'EuclideanHeuristic')
    if heuristic_type not in HEURISTIC_TYPES:
        errors.append(f"Heuristic {heuristic_type} not available")

    planner_type = planner.get('planner_type', 'ARAPlanner')
    if planner_type not in SEARCH_ENGINES:
        errors.append(f"Planner {planner_type} not available")

    footsteps = planner.get('footsteps')
    if not isinstance(footsteps, dict):
        errors.append("No footstep parameterization available")
    else:
        lists = [footsteps.get(axis) for axis in ('x', 'y', 'theta')]
        if not all(isinstance(values, (list, tuple)) for values in lists):
            errors.append("Footstep parameterization needs lists for x, y and theta")
        elif len({len(values) for values in lists}) != 1:
            errors.append("Footstep parameterization has different sizes for x/y/theta")
        elif not lists[0]:
            errors.append("Footstep parameterization is empty")

    accuracy = planner.get('accuracy', {})
    _positive(accuracy, 'cell_size', errors, "accuracy/cell_size")
    _positive(accuracy, 'num_angle_bins', errors, "accuracy/num_angle_bins")
    if accuracy.get('collision_check', 2) not in (0, 1, 2):
        errors.append(f"accuracy/collision_check must be 0, 1 or 2, "
                      f"got {accuracy.get('collision_check')!r}")

    _positive(planner, 'max_hash_size', errors, "max_hash_size")
    _positive(planner, 'allocated_time', errors, "allocated_time")
    if planner.get('initial_epsilon', 3.0) < 1.0:
        errors.append("initial_epsilon must be at least 1.0")
    if planner.get('changed_states_limit', 0) < 0:
        errors.append("changed_states_limit must not be negative")

    foot = planner.get('foot', {})
    _positive(foot.get('size', {}), 'x', errors, "foot/size/x")
    _positive(foot.get('size', {}), 'y', errors, "foot/size/y")
    _positive(foot, 'separation', errors, "foot/separation")

    return errors

def validate_config(config: SystemConfig) -> Dict[str, List[str]]:

    errors = {}

    planner_errors = validate_planner_config(config.planner)
    if planner_errors:
        errors['planner'] = planner_errors

    logging_errors = []
    level = str(config.logging.get('level', 'INFO')).upper()
    if not isinstance(logging.getLevelName(level), int):
        logging_errors.append(f"Unknown log level: {level}")

    if logging_errors:
        errors['logging'] = logging_errors

    return errors
