import logging
import pytest
from unittest.mock import MagicMock

from kpi_proxy.core.logging_config import NamespaceFilter, configure_logging

@pytest.fixture
def logging_env():
    """
    A pytest fixture to set up and tear down a controlled logging environment for tests.

    Yields:
        MagicMock: A mock logging handler whose accepted records can be inspected.
    """
    test_handler = MagicMock()
    test_handler.level = logging.NOTSET
    test_handler.filters = []

    def add_filter(filter_obj):
        test_handler.filters.append(filter_obj)
        return filter_obj

    # Apply filters the way logging.Handler.handle does and keep what passes
    accepted_records = []
    def handle(record):
        for f in test_handler.filters:
            if not f.filter(record):
                return False
        accepted_records.append(record)
        return True

    test_handler.addFilter = MagicMock(side_effect=add_filter)
    test_handler.handle = MagicMock(side_effect=handle)
    test_handler.accepted_records = accepted_records

    loggers_to_manage = [
        "kpi_proxy", "kpi_proxy.features.reports", "kpi_proxy.features.auth",
        "kpi_proxy.features.reports.router", "kpi_proxy.core.database", "kpi_proxy.main"
    ]

    def reset():
        for logger_name in loggers_to_manage:
            logger = logging.getLogger(logger_name)
            logger.handlers = []
            logger.filters = []
            logger.setLevel(logging.NOTSET)
            logger.propagate = True

    reset()
    yield test_handler
    reset()


def _setup_logger(name, level, handler_to_add):
    """Helper function to configure a logger for testing."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = [handler_to_add]
    logger.propagate = False
    return logger

def get_handled_messages(test_handler: MagicMock) -> list[str]:
    """Extracts formatted log messages from the mock handler's accepted records."""
    return [f"{r.name}:{r.levelname}:{r.getMessage()}" for r in test_handler.accepted_records]

def test_default_level_propagation(logging_env):
    """
    Child loggers inherit the level of the 'kpi_proxy' logger.
    """
    _setup_logger("kpi_proxy", logging.INFO, logging_env)

    reports_logger = logging.getLogger("kpi_proxy.features.reports")
    db_logger = logging.getLogger("kpi_proxy.core.database")

    reports_logger.debug("Report debug message")
    reports_logger.info("Report info message")
    db_logger.warning("Database warning message")

    handled_messages = get_handled_messages(logging_env)
    assert "kpi_proxy.features.reports:DEBUG:Report debug message" not in handled_messages
    assert "kpi_proxy.features.reports:INFO:Report info message" in handled_messages
    assert "kpi_proxy.core.database:WARNING:Database warning message" in handled_messages

def test_namespace_filter_allow(logging_env):
    """
    NamespaceFilter lets through records from the listed namespaces only.
    """
    _setup_logger("kpi_proxy", logging.DEBUG, logging_env)
    logging_env.addFilter(NamespaceFilter(allowed_namespaces=["kpi_proxy.features.reports"]))

    logging.getLogger("kpi_proxy.features.reports.router").info("Report message (allowed)")
    logging.getLogger("kpi_proxy.core.database").info("Database message (filtered)")
    logging.getLogger("kpi_proxy.main").info("Main message (filtered)")

    handled_messages = get_handled_messages(logging_env)
    assert "kpi_proxy.features.reports.router:INFO:Report message (allowed)" in handled_messages
    assert "kpi_proxy.core.database:INFO:Database message (filtered)" not in handled_messages
    assert "kpi_proxy.main:INFO:Main message (filtered)" not in handled_messages

def test_namespace_filter_allow_all_if_empty(logging_env):
    _setup_logger("kpi_proxy", logging.DEBUG, logging_env)
    logging_env.addFilter(NamespaceFilter(allowed_namespaces=[]))

    logging.getLogger("kpi_proxy.features.reports").info("Report message (filter empty)")
    logging.getLogger("kpi_proxy.features.auth").info("Auth message (filter empty)")

    handled_messages = get_handled_messages(logging_env)
    assert "kpi_proxy.features.reports:INFO:Report message (filter empty)" in handled_messages
    assert "kpi_proxy.features.auth:INFO:Auth message (filter empty)" in handled_messages

def test_configure_logging_sets_level_and_single_handler(logging_env):
    configure_logging("debug", ["kpi_proxy.features"])
    app_logger = configure_logging("warning", ["kpi_proxy.features"])

    assert app_logger.name == "kpi_proxy"
    assert app_logger.level == logging.WARNING
    assert len(app_logger.handlers) == 1
    handler = app_logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert any(isinstance(f, NamespaceFilter) for f in handler.filters)

def test_configure_logging_without_namespaces_adds_no_filter(logging_env):
    app_logger = configure_logging()
    assert app_logger.level == logging.INFO
    assert app_logger.handlers[0].filters == []
