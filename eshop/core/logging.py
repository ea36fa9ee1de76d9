import logging

from eshop.core.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configures the root logger once for the API process and the dispatcher."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
