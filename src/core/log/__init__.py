"""Logging micro API for ui-label-synth."""

from .lib import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
