"""
Structured logging for Backend Signals.

get_logger() for module loggers, bind_entity() when every event of a call
concerns one entity.
"""

from backend_signals.signals_logging.logger import bind_entity, get_logger

__all__ = ["bind_entity", "get_logger"]
