# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

from cudabind import context, dispatch, error, launch, params
from cudabind._version import __git_commit__, __version__
from cudabind.context import Context
from cudabind.dispatch import LaunchStrategy, get_dispatcher
from cudabind.error import (
    CUDADriverError,
    CUDAError,
    CUDARuntimeError,
    CUDAUnsupportedError,
    CUDAUsageError,
    check_status,
    query_status,
)
from cudabind.launch import (
    launch_cooperative_kernel,
    launch_kernel,
    launch_kernel_extra,
)
from cudabind.logger import (
    flush_logger,
    get_flush_level,
    get_logging_level,
    level_enum,
    set_flush_level,
    set_logging_level,
    should_log,
)
from cudabind.params import FloatParam, IntParam, ValueParam
from cudabind.stream import (
    DEFAULT_STREAM,
    LEGACY_DEFAULT_STREAM,
    PER_THREAD_DEFAULT_STREAM,
    Stream,
)

__all__ = [
    "CUDADriverError",
    "CUDAError",
    "CUDARuntimeError",
    "CUDAUnsupportedError",
    "CUDAUsageError",
    "Context",
    "DEFAULT_STREAM",
    "FloatParam",
    "IntParam",
    "LEGACY_DEFAULT_STREAM",
    "LaunchStrategy",
    "PER_THREAD_DEFAULT_STREAM",
    "Stream",
    "ValueParam",
    "check_status",
    "context",
    "dispatch",
    "error",
    "flush_logger",
    "get_dispatcher",
    "get_flush_level",
    "get_logging_level",
    "launch",
    "launch_cooperative_kernel",
    "launch_kernel",
    "launch_kernel_extra",
    "level_enum",
    "params",
    "query_status",
    "set_flush_level",
    "set_logging_level",
    "should_log",
]
