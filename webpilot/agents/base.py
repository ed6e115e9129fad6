"""
Base Component Class.
Common naming and logging for the components of the agent loop.
"""

import logging


class BaseComponent:
    """
    Base class for loop components (planner, executor, orchestrator).
    Provides a named logger so every line says which component wrote it.
    """

    def __init__(self, name: str):
        """
        Initialize component.

        Args:
            name: Component name used as the log prefix
        """
        self.name = name
        self.logger = logging.getLogger(type(self).__module__)

    def log(self, message: str, level: int = logging.INFO) -> None:
        """Log a message tagged with the component name."""
        self.logger.log(level, "[%s] %s", self.name, message)
