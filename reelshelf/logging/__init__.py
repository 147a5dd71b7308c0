"""Terminal reporting and logging setup."""
from .rich_logger import QuietReporter, RichReporter, configure_logging

__all__ = ["QuietReporter", "RichReporter", "configure_logging"]
