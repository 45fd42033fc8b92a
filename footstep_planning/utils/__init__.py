from footstep_planning.utils.config_loader import (
    ConfigManager, SystemConfig, load_config, validate_config, validate_planner_config
)
from footstep_planning.utils.logger import setup_logging, get_logger
from footstep_planning.utils.visualization import FootstepVisualizer

__all__ = [
    'ConfigManager', 'SystemConfig', 'load_config', 'validate_config', 'validate_planner_config',

    'setup_logging', 'get_logger',

    'FootstepVisualizer'
]
