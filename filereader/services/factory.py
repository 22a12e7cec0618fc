"""Factory for creating service instances."""

from filereader.exceptions import ConfigError
from filereader.services.dd_block_reader import DdBlockReader
from filereader.services.interfaces import BlockReader
from filereader.services.python_block_reader import PythonBlockReader


class ServiceFactory:
    """Factory for creating service instances."""

    @staticmethod
    def create_block_reader(backend: str = "python") -> BlockReader:
        """Create the block reader for a backend name ("python" or "dd")."""
        if backend == "python":
            return PythonBlockReader()
        if backend == "dd":
            return DdBlockReader()
        raise ConfigError(f"Unknown reader backend {backend!r}")
