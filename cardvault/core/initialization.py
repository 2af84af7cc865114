"""Application initialization and setup.

Tasks that must run before the application object is created: loading the
``.env`` file into the process environment and configuring logging.
"""

from dotenv import load_dotenv

from cardvault.core.config.settings import Settings, create_settings
from cardvault.core.logging import configure_logging


def initialize_application() -> Settings:
    """Load the environment, build the settings and configure logging.

    Returns:
        Settings: The settings the application is created with.
    """
    load_dotenv(override=False)
    settings = create_settings()
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    return settings
