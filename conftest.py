"""
Pytest configuration for the Intcode test suite.

    python -m pytest                    # whole suite
    python -m pytest -m "not slow"      # skip exhaustive phase searches
    python -m pytest --trace-intcode    # per-instruction DEBUG log
"""

import logging


def pytest_addoption(parser):
    parser.addoption("--trace-intcode", action="store_true", default=False,
                     help="Log every executed instruction at DEBUG level")


def pytest_configure(config):
    """Register markers and optional instruction tracing."""
    config.addinivalue_line("markers",
        "slow: exhaustive searches over amplifier phase orderings")

    if config.getoption("--trace-intcode"):
        logging.getLogger("intcode").setLevel(logging.DEBUG)
