import logging

import pytest

from chatapp.config.settings import get_settings
from chatapp.core.logging.builder import setup_logging


@pytest.fixture
def restore_logging(request):
    """Re-apply the suite's logging config after a test installs its own."""
    yield
    setup_logging(get_settings())
    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None)
    if handler is not None:
        logging.getLogger().addHandler(handler)
