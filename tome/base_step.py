from abc import ABC, abstractmethod
from typing import Any, Optional

from tome.config import Settings
from tome.logging import get_logger


class PipelineStep(ABC):
    """abstract base class for the steps applied to each document."""

    def __init__(self, settings: Optional[Settings] = None, name: Optional[str] = None):
        """initialize the pipeline step.

        Args:
            settings: Run settings. Defaults are used when omitted.
            name: Optional name for the step (used for logging).
        """
        self.settings = settings or Settings()
        self.debug = self.settings.log_level == "DEBUG"
        self.logger = get_logger(name or self.__class__.__name__)

    @abstractmethod
    async def execute(self, input_data: Any) -> Any:
        """Execute the pipeline step.

        Args:
            input_data: Input data to process.

        Returns:
            Processed data or result of the step.
        """
        pass

    async def __call__(self, input_data: Any) -> Any:
        """shortway of calling `execute` method."""
        return await self.execute(input_data)
