"""
Centralized logging configuration with categorized loggers.

This module provides:
- Named categories for the library's subsystems
- Per-category log level control
- Console logging plus an optional rotating log file

The library itself never configures logging on import; applications call
``setup_logging()`` if they want avatarkit's diagnostics.
"""
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Dict, Optional


# Logger categories for different subsystems
class LoggerCategory:
    """Named categories for library loggers"""
    CORE = "core"                  # Options, errors, DTOs
    MEDIA = "media"                # Icon classification and SVG recoloring
    NETWORK = "network"            # HTTP fetches of remote icons
    RENDER = "render"              # Canvas drawing and export


# Default log levels for each category
DEFAULT_LOG_LEVELS = {
    LoggerCategory.CORE: logging.INFO,
    LoggerCategory.MEDIA: logging.INFO,
    LoggerCategory.NETWORK: logging.INFO,
    LoggerCategory.RENDER: logging.WARNING,  # Font fallback noise
}


# Map module names to categories
MODULE_TO_CATEGORY = {
    # Core
    'avatarkit.core': LoggerCategory.CORE,
    'avatarkit.core.options': LoggerCategory.CORE,

    # Network
    'avatarkit.core.http_client': LoggerCategory.NETWORK,

    # Media
    'avatarkit.media.source': LoggerCategory.MEDIA,
    'avatarkit.media.vector': LoggerCategory.MEDIA,
    'avatarkit.media.resolver': LoggerCategory.MEDIA,

    # Render
    'avatarkit.media.renderer': LoggerCategory.RENDER,
}

LOG_FILE_NAME = "avatarkit.log"


class LoggingManager:
    """Manages library-wide logging configuration"""

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        levels: Optional[Dict[str, int]] = None,
    ):
        """
        Initialize logging manager.

        Args:
            log_dir: Directory for the rotating log file; console only when None
            levels: Per-category level overrides
        """
        self.log_dir = Path(log_dir) if log_dir else None
        self._category_levels: Dict[str, int] = DEFAULT_LOG_LEVELS.copy()
        if levels:
            self._category_levels.update(levels)

    def get_category_level(self, category: str) -> int:
        """Get log level for a category"""
        return self._category_levels.get(category, logging.INFO)

    def set_category_level(self, category: str, level: int):
        """Set log level for a category"""
        self._category_levels[category] = level
        self._apply_category_level(category, level)

    def _apply_category_level(self, category: str, level: int):
        """Apply level to all loggers in a category"""
        for module_name, cat in MODULE_TO_CATEGORY.items():
            if cat == category:
                logging.getLogger(module_name).setLevel(level)

    def setup_logging(self, root_level: int = logging.INFO):
        """
        Attach handlers to the ``avatarkit`` logger and apply category levels.

        The package logger stops propagating, so records are emitted once even
        when the application also configures the root logger.

        Args:
            root_level: Level of the package logger (default: INFO)
        """
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        package_logger = logging.getLogger("avatarkit")
        package_logger.setLevel(root_level)
        # Own handlers below; records must not also reach root handlers
        package_logger.propagate = False

        # Remove handlers from a previous setup
        for handler in list(package_logger.handlers):
            if not isinstance(handler, logging.NullHandler):
                package_logger.removeHandler(handler)
                handler.close()

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        package_logger.addHandler(stream_handler)

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = TimedRotatingFileHandler(
                self.log_dir / LOG_FILE_NAME,
                when="midnight",
                interval=1,
                backupCount=7,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

        for category, level in self._category_levels.items():
            self._apply_category_level(category, level)

        # Silence noisy third-party loggers
        logging.getLogger('aiohttp').setLevel(logging.WARNING)
        logging.getLogger('asyncio').setLevel(logging.WARNING)
        logging.getLogger('PIL').setLevel(logging.WARNING)

    def get_all_levels(self) -> Dict[str, int]:
        """Get all category log levels"""
        return self._category_levels.copy()


def setup_logging(
    log_dir: Optional[Path] = None,
    levels: Optional[Dict[str, int]] = None,
    root_level: int = logging.INFO,
) -> LoggingManager:
    """Setup avatarkit logging (convenience function)"""
    manager = LoggingManager(log_dir=log_dir, levels=levels)
    manager.setup_logging(root_level)
    return manager
