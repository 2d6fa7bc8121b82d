import logging
import logging.config
from pathlib import Path


def setup_logging(config) -> logging.Logger:
    """Configure logging from an EngineConfig"""
    if config.log_to_file:
        Path(config.log_dir).mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(config.get_logging_config())
    return logging.getLogger('lockedin')
