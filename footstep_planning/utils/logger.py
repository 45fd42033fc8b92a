import logging
import logging.handlers
import sys
from typing import Dict, Any
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

def setup_logging(config: Dict[str, Any]) -> logging.Logger:
    """
    Configure the root logger from the logging section of the configuration.

    Keys: level, console_logging, file_logging, log_dir, max_file_size_mb,
    backup_count, console_format, file_format and components, a mapping of
    logger names (e.g. 'footstep_planning.search') to levels.
    """
    default_config = {
        "level": "INFO",
        "console_logging": True,
        "file_logging": False,
        "log_dir": "logs",
        "max_file_size_mb": 10,
        "backup_count": 5,
        "components": {},
    }
    merged_config = {**default_config, **(config or {})}

    log_level = getattr(logging, str(merged_config["level"]).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if merged_config["console_logging"]:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(
            logging.Formatter(merged_config.get("console_format", DEFAULT_FORMAT)))
        root_logger.addHandler(console_handler)

    if merged_config["file_logging"]:
        log_dir = Path(merged_config["log_dir"])
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "footstep_planner.log",
            maxBytes=int(merged_config["max_file_size_mb"] * 1024 * 1024),
            backupCount=merged_config["backup_count"]
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter(merged_config.get("file_format", DEFAULT_FILE_FORMAT)))
        root_logger.addHandler(file_handler)

    for name, level in merged_config["components"].items():
        logging.getLogger(name).setLevel(getattr(logging, str(level).upper(), log_level))

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {logging.getLevelName(log_level)}")
    return root_logger

def get_logger(name: str) -> logging.Logger:

    return logging.getLogger(name)
