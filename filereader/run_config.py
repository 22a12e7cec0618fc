"""Run configuration with environment defaults and validation support."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass, replace
from typing import Any, Final, Mapping

from filereader.exceptions import ConfigError

LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}

_BLOCK_SIZE_ENV: Final = "FILE_READER_BLOCK_SIZE"
_JOBS_ENV: Final = "FILE_READER_JOBS"
_SKIP_ERRORS_ENV: Final = "FILE_READER_SKIP_ERRORS"
_BACKEND_ENV: Final = "FILE_READER_BACKEND"
_CANCEL_GRACE_ENV: Final = "FILE_READER_CANCEL_GRACE"

DEFAULT_BLOCK_SIZE: Final = "1M"
DEFAULT_JOBS: Final = 1
DEFAULT_BACKEND: Final = "python"
DEFAULT_CANCEL_GRACE_SECONDS: Final = 10.0
SUPPORTED_BACKENDS: Final = ("python", "dd")

# K/M/G/T are powers of 1024, KB/MB/GB/TB powers of 1000 (dd conventions)
_BLOCK_SIZE_RE: Final = re.compile(r"^(?P<count>[0-9]+)(?P<suffix>[KMGT]B?)?$", re.IGNORECASE)
_SUFFIX_EXPONENT: Final[dict[str, int]] = {"K": 1, "M": 2, "G": 3, "T": 4}


def parse_block_size(value: str) -> int:
    """Convert a block size such as ``512``, ``64K``, ``1M`` or ``8MB`` to bytes.

    Raises:
        ConfigError: If the value is malformed or zero.
    """
    match = _BLOCK_SIZE_RE.match(value.strip()) if value else None
    if match is None:
        raise ConfigError(f"Invalid block size {value!r} (examples: 512, 1K, 4K, 1M, 8M, 64M, 1G)")

    count = int(match.group("count"))
    suffix = (match.group("suffix") or "").upper()
    if suffix:
        base = 1000 if suffix.endswith("B") else 1024
        count *= base ** _SUFFIX_EXPONENT[suffix[0]]

    if count <= 0:
        raise ConfigError(f"Block size must be positive, got {value!r}")
    return count


def _env_bool(value: str | None, default: bool) -> bool:
    """Parse a boolean environment variable with a configurable default."""
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Validated configuration for one read run.

    Immutable for the run's duration. CLI options override the values
    loaded from the environment via ``with_overrides``.
    """

    block_size: str = DEFAULT_BLOCK_SIZE
    jobs: int = DEFAULT_JOBS
    skip_errors: bool = False
    reader_backend: str = DEFAULT_BACKEND
    cancel_grace_seconds: float = DEFAULT_CANCEL_GRACE_SECONDS

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> RunConfig:
        """Build a configuration from FILE_READER_* environment variables."""
        source = os.environ if env is None else env
        return cls(
            block_size=(source.get(_BLOCK_SIZE_ENV) or DEFAULT_BLOCK_SIZE).strip(),
            jobs=_env_int(source, _JOBS_ENV, DEFAULT_JOBS),
            skip_errors=_env_bool(source.get(_SKIP_ERRORS_ENV), False),
            reader_backend=(source.get(_BACKEND_ENV) or DEFAULT_BACKEND).strip().lower(),
            cancel_grace_seconds=_env_float(source, _CANCEL_GRACE_ENV, DEFAULT_CANCEL_GRACE_SECONDS),
        )

    def with_overrides(self, **overrides: Any) -> RunConfig:
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    @property
    def block_size_bytes(self) -> int:
        return parse_block_size(self.block_size)

    def validate(self) -> None:
        """Validate every option, raising ConfigError on the first bad value."""
        parse_block_size(self.block_size)

        if isinstance(self.jobs, bool) or not isinstance(self.jobs, int) or self.jobs < 1:
            raise ConfigError(f"jobs must be a positive integer, got {self.jobs!r}")

        if self.reader_backend not in SUPPORTED_BACKENDS:
            raise ConfigError(
                f"Unknown reader backend {self.reader_backend!r}; expected one of {', '.join(SUPPORTED_BACKENDS)}"
            )

        if self.cancel_grace_seconds < 0:
            raise ConfigError(f"cancel_grace_seconds must be >= 0, got {self.cancel_grace_seconds}")

        if self.jobs > (os.cpu_count() or 1) * 32:
            LOGGER.warning("Running %d parallel jobs; the storage path may become the bottleneck", self.jobs)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for logging."""
        return asdict(self)
