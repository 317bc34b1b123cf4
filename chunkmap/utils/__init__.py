"""Utility modules for the chunkmap evaluator.
"""

from .io_utils import load_settings, reload_settings
from .logging_utils import get_logger, setup_logging
from .path_utils import get_config_path, get_project_root
from .perf_utils import time_stage
from .resource_monitor import calculate_optimal_workers, get_system_info

__all__ = [
    # Logging utilities
    "setup_logging",
    "get_logger",
    # Settings
    "load_settings",
    "reload_settings",
    # Path utilities
    "get_config_path",
    "get_project_root",
    # Performance utilities
    "time_stage",
    # Resources
    "calculate_optimal_workers",
    "get_system_info",
]
