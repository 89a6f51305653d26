"""
Centralized logging for the STT relay.

Provides structured JSON logging with service tagging,
log rotation, and a human-readable console stream.
"""

from stt_relay.logging.setup import get_logger, sanitize_for_log, setup_logging

__all__ = ["setup_logging", "get_logger", "sanitize_for_log"]
