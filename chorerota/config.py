"""Configuration for the ChoreRota planning core."""

import os


class Config:
    """Base configuration."""

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Local timezone used for "today" (occurrence dates are calendar dates)
    TIMEZONE = os.environ.get('TZ', 'Europe/Berlin')

    # Rotation schedule settings
    DEFAULT_OCCURRENCE_COUNT = int(os.environ.get('DEFAULT_OCCURRENCE_COUNT', '3'))
    SPECIAL_OCCURRENCE_START = int(os.environ.get('SPECIAL_OCCURRENCE_START', '1000'))

    # Locale for "3. Donnerstag" style labels ('de' or 'en')
    WEEKDAY_LOCALE = os.environ.get('WEEKDAY_LOCALE', 'de')

    DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true'
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG').upper()


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    # Pin values so tests don't depend on the environment
    TIMEZONE = 'Europe/Berlin'
    DEFAULT_OCCURRENCE_COUNT = 3
    SPECIAL_OCCURRENCE_START = 1000
    WEEKDAY_LOCALE = 'de'


# Config dictionary for easy access
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
