from packages.aip_core.logging.config import LOGGING_CONFIG, setup_logging, get_logger

__all__ = ["LOGGING_CONFIG", "setup_logging", "get_logger"]
