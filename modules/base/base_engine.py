import abc
import logging
from pathlib import Path
from typing import Dict, Any


class BaseEngine(abc.ABC):
    """
    Abstract base class for the fit, predict and tuning engines.

    Provides common functionality for:
    - Configuration and logger attachment.
    - Output directory management under ``outputs.base_results_dir``.
    """

    def __init__(self, config: Dict[str, Any], logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.outputs = self.config.get('outputs', {})
        self.base_dir = Path(self.outputs.get('base_results_dir', 'results'))
        self.output_dir = self.base_dir / self._get_engine_directory_name()

        self._setup_directories()

    @abc.abstractmethod
    def _get_engine_directory_name(self) -> str:
        """
        Directory name for the engine's output, e.g. '03_TrainedModel'.
        """
        raise NotImplementedError("Subclasses must implement _get_engine_directory_name.")

    def _setup_directories(self):
        if self.outputs.get('skip_dir_creation', False):
            # Compute-only use (tuning candidates, library calls)
            return

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Output directory for {self.__class__.__name__}: {self.output_dir}")

    def save_enabled(self, key: str) -> bool:
        """Whether an ``outputs`` flag allows writing artifacts."""
        return bool(self.outputs.get(key, True)) and not self.outputs.get('skip_dir_creation', False)

    @abc.abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """
        Main execution method for the engine.
        This must be implemented by all subclasses.
        """
        pass
