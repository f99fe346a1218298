"""Core utilities shared across ui-label-synth."""

from .log import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
