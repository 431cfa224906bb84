"""ChoreRota planner - main entry point.

create_planner() is the application factory: it loads the configuration,
sets up logging and returns a Planner that hands out services bound to
that configuration.
"""

import os
import sys
import logging
from typing import Optional

from config import config
from models import RecurrenceConfig
from services.completion_service import CompletionService
from services.rotation_service import RotationService

logger = logging.getLogger(__name__)


def configure_logging(app_config) -> None:
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, app_config.LOG_LEVEL, logging.INFO),
        format=app_config.LOG_FORMAT,
        stream=sys.stdout
    )


class Planner:
    """Entry point used by request handlers and background jobs."""

    def __init__(self, app_config):
        self.config = app_config

    def rotation(self, recurrence: RecurrenceConfig, required_persons: int = 1) -> RotationService:
        """Rotation schedule service for one task."""
        logger.debug(f"Rotation service for {recurrence.to_dict()}")
        return RotationService(
            recurrence,
            required_persons=max(required_persons or 1, 1),
            default_occurrence_count=self.config.DEFAULT_OCCURRENCE_COUNT,
            special_start=self.config.SPECIAL_OCCURRENCE_START,
            tz_name=self.config.TIMEZONE,
            locale=self.config.WEEKDAY_LOCALE
        )

    def completion(self) -> CompletionService:
        return CompletionService()


def create_planner(config_name: Optional[str] = None) -> Planner:
    """Application factory for the planner."""
    if config_name is None:
        config_name = os.environ.get('CHOREROTA_ENV', 'production')

    app_config = config.get(config_name, config['default'])
    configure_logging(app_config)

    logger.info(f"ChoreRota planner ready (config={config_name})")
    return Planner(app_config)
