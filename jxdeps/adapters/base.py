"""Base class and registry for project configuration adapters.

An adapter knows how to read the declared dependencies of one project file
format and how to write a new list of specs back into it.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

from jxdeps.model import DependencySpec

logger = logging.getLogger("jxdeps.adapters.base")


class ConfigAdapter(ABC):
    """Reads and writes declared dependencies for one config format.

    Attributes:
        NAME: Short identifier used in logs and on the command line.
        FILENAME: File the adapter owns, relative to the project directory.
    """

    NAME: str = "base"
    FILENAME: str = ""

    def config_path(self, project_dir: Path) -> Path:
        return Path(project_dir) / self.FILENAME

    def exists(self, project_dir: Path) -> bool:
        return self.config_path(project_dir).is_file()

    @abstractmethod
    def read_specs(self, project_dir: Path) -> List[DependencySpec]:
        """Return the dependencies declared in the project file.

        Raises:
            ConfigurationError: The file is missing or malformed.
        """
        raise NotImplementedError

    @abstractmethod
    def write_specs(self, project_dir: Path, specs: Sequence[DependencySpec]) -> None:
        """Replace the declared dependencies with ``specs``, in order.

        Parts of the file unrelated to dependencies are preserved.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.FILENAME!r})"


class AdapterRegistry:
    """Global registry of config adapters.

    Adapters are consulted in registration order when detecting which file a
    project uses, so the first registered format wins when several exist.
    """

    _instance: Optional["AdapterRegistry"] = None

    def __init__(self) -> None:
        # name -> adapter class, in precedence order
        self._adapters: Dict[str, Type[ConfigAdapter]] = {}

    @classmethod
    def get_instance(cls) -> "AdapterRegistry":
        """Get singleton instance.

        Returns:
            AdapterRegistry: Global registry instance.
        """
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, adapter_class: Type[ConfigAdapter]) -> None:
        name = adapter_class.NAME
        if name in self._adapters:
            logger.warning(
                "Overwriting existing adapter '%s': %s -> %s",
                name,
                self._adapters[name].__name__,
                adapter_class.__name__,
            )
        self._adapters[name] = adapter_class
        logger.debug("Registered adapter '%s': %s", name, adapter_class.__name__)

    def get(self, name: str) -> Optional[ConfigAdapter]:
        adapter_class = self._adapters.get(name)
        return adapter_class() if adapter_class is not None else None

    def names(self) -> List[str]:
        return list(self._adapters)

    def detect(self, project_dir: Path) -> Optional[ConfigAdapter]:
        """Return the adapter for the highest-precedence file present."""
        for adapter_class in self._adapters.values():
            adapter = adapter_class()
            if adapter.exists(project_dir):
                logger.debug("Detected %s in %s", adapter.FILENAME, project_dir)
                return adapter
        return None
