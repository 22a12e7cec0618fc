from __future__ import annotations

from typing import TYPE_CHECKING, Any

__version__ = "0.1.0"

# Keep imports lazy so `file-reader --help` stays fast.
__all__ = ["FileReadRunner", "RunConfig", "load_tasks"]

if TYPE_CHECKING:
    from filereader.loader import load_tasks
    from filereader.run_config import RunConfig
    from filereader.runner import FileReadRunner

_LAZY_MODULES = {
    "FileReadRunner": "filereader.runner",
    "RunConfig": "filereader.run_config",
    "load_tasks": "filereader.loader",
}


def __getattr__(name: str) -> Any:
    if name in _LAZY_MODULES:
        import importlib

        return getattr(importlib.import_module(_LAZY_MODULES[name]), name)
    raise AttributeError(f"module 'filereader' has no attribute '{name}'")
