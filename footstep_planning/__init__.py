import logging
import sys

__version__ = "1.0.0"
__author__ = "Footstep Planning Team"
__description__ = "Footstep planning for biped robots on 2D occupancy grids"

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )

logger = logging.getLogger(__name__)
logger.debug(f"footstep_planning v{__version__} package loaded")

__all__ = ['__version__', '__author__', '__description__']
