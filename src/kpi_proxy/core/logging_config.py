import logging
import sys
from typing import Iterable, Optional

class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = list(allowed_namespaces) if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)

log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

APP_LOGGER_NAME = "kpi_proxy"


def configure_logging(
    level: str = "INFO", allowed_namespaces: Optional[Iterable[str]] = None
) -> logging.Logger:
    """
    Attach a stdout handler to the 'kpi_proxy' logger.

    Modules use logging.getLogger(__name__), so their loggers
    ("kpi_proxy.features.reports.router", ...) inherit this level and handler.
    Calling it again replaces the previous handler instead of stacking a new one.
    """
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)

    # To only see logs from e.g. "kpi_proxy.features.reports", set
    # LOG_NAMESPACES=kpi_proxy.features.reports
    if allowed_namespaces:
        console_handler.addFilter(NamespaceFilter(allowed_namespaces))

    app_logger.handlers = [console_handler]
    return app_logger
