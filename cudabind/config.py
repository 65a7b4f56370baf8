# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

"""Environment-driven settings.

All settings are read from ``CUDABIND_*`` environment variables the first
time :func:`get_config` is called and are fixed afterwards. Tests can use
:func:`reload_config` after changing the environment.
"""

import functools
import os
from dataclasses import dataclass

_LAUNCH_STRATEGIES = ("params", "extra", "legacy")
_LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "critical", "off")


@dataclass(frozen=True)
class Config:
    """Settings of the binding layer.

    Attributes
    ----------
    cuda_version
        Native version override, encoded as ``1000 * major + 10 * minor``.
        ``None`` means the version is queried from the driver.
    launch_strategy
        Name of a forced launch strategy, or ``None`` for the version
        default.
    libcuda
        Path or soname of the driver library, or ``None`` for the platform
        default.
    log_level
        Initial logging level name.
    log_file
        File receiving log records, or ``None`` to log to stderr.
    """

    cuda_version: int | None = None
    launch_strategy: str | None = None
    libcuda: str | None = None
    log_level: str = "warn"
    log_file: str | None = None


def _readenv(name, ctor, default=None):
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return ctor(value.strip())
    except ValueError as e:
        raise ValueError(
            f"Could not parse environment variable {name}={value!r}: {e}"
        ) from e


def _parse_version(value: str) -> int:
    # Accept both "12040" and "12.4"
    if "." in value:
        major, minor = value.split(".", 1)
        version = 1000 * int(major) + 10 * int(minor)
    else:
        version = int(value)
    if version <= 0:
        raise ValueError("version must be positive")
    return version


def _choice(choices):
    def parse(value: str) -> str:
        value = value.lower()
        if value not in choices:
            raise ValueError(f"expected one of {', '.join(choices)}")
        return value

    return parse


@functools.cache
def get_config() -> Config:
    """Return the process-wide configuration, reading it on first use."""
    return Config(
        cuda_version=_readenv("CUDABIND_CUDA_VERSION", _parse_version),
        launch_strategy=_readenv(
            "CUDABIND_LAUNCH_STRATEGY", _choice(_LAUNCH_STRATEGIES)
        ),
        libcuda=_readenv("CUDABIND_LIBCUDA", str),
        log_level=_readenv(
            "CUDABIND_LOG_LEVEL", _choice(_LOG_LEVELS), default="warn"
        ),
        log_file=_readenv("CUDABIND_LOG_FILE", str),
    )


def reload_config() -> Config:
    """Discard the cached configuration and read the environment again."""
    get_config.cache_clear()
    return get_config()
