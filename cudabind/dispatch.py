# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

"""Selection of native call sequences by CUDA version.

The installed CUDA version is resolved once per process, from the
``CUDABIND_CUDA_VERSION`` setting if present and from the driver otherwise.
Everything derived from it (the launch strategy and the capability flags)
is fixed for the lifetime of the process; there is no runtime fallback from
one call sequence to another.
"""

import functools
from dataclasses import dataclass
from enum import Enum

import cuda.bindings
from cuda.bindings import driver

from cudabind.config import get_config
from cudabind.error import (
    CUDAUnsupportedError,
    CUDAUsageError,
    format_version,
)
from cudabind.logger import make_logger

_logger = make_logger()

# cuLaunchKernel and cuCtxSetCurrent first appear in CUDA 4.0
KERNEL_LAUNCH_VERSION = 4000
FUNC_CACHE_CONFIG_VERSION = 3000
CONTEXT_LIMIT_VERSION = 3010
CONTEXT_CONFIG_VERSION = 3020
COOPERATIVE_LAUNCH_VERSION = 9000
SHARED_MEM_CONFIG_VERSION = 4020
PEER_ACCESS_VERSION = 4000
STREAM_PRIORITY_VERSION = 5050
FUNC_SET_ATTRIBUTE_VERSION = 9000

# Major version of the cuda.bindings package, fixed at import time.
# cuCtxCreate gained a creation-parameters argument in 13.0.
BINDINGS_MAJOR_VERSION = int(cuda.bindings.__version__.split(".")[0])


class LaunchStrategy(Enum):
    """Native call sequence used to launch a kernel.

    PARAMS
        A single ``cuLaunchKernel`` call receiving one pointer per argument.
    EXTRA
        A single ``cuLaunchKernel`` call receiving one packed argument buffer
        through its ``extra`` table.
    LEGACY
        ``cuParamSet*``, ``cuFuncSetSharedSize``, ``cuFuncSetBlockShape`` and
        ``cuLaunchGridAsync``. The grid has no z dimension.
    """

    PARAMS = "params"
    EXTRA = "extra"
    LEGACY = "legacy"


@dataclass(frozen=True)
class Capabilities:
    """Optional features of the installed native library."""

    grid_z: bool
    cooperative_launch: bool
    shared_mem_config: bool
    peer_access: bool
    stream_priorities: bool
    func_set_attribute: bool


class Dispatcher:
    """Version-dependent choices for one native library version.

    Parameters
    ----------
    version : int
        Native version, encoded as ``1000 * major + 10 * minor``.
    strategy : str or LaunchStrategy, optional
        Launch strategy to force. The default is ``PARAMS`` when the version
        provides ``cuLaunchKernel`` and ``LEGACY`` otherwise.

    Raises
    ------
    CUDAUsageError
        If the forced strategy is not available for ``version``.
    """

    def __init__(self, version: int, strategy=None):
        self.version = int(version)

        if strategy is None:
            strategy = self.available_strategies()[0]
        else:
            strategy = LaunchStrategy(strategy)
            if strategy not in self.available_strategies():
                raise CUDAUsageError(
                    f"Launch strategy {strategy.value!r} is not available "
                    f"with CUDA {format_version(self.version)}"
                )
        self.strategy = strategy

        self.capabilities = Capabilities(
            grid_z=strategy is not LaunchStrategy.LEGACY,
            cooperative_launch=self.supports(COOPERATIVE_LAUNCH_VERSION),
            shared_mem_config=self.supports(SHARED_MEM_CONFIG_VERSION),
            peer_access=self.supports(PEER_ACCESS_VERSION),
            stream_priorities=self.supports(STREAM_PRIORITY_VERSION),
            func_set_attribute=self.supports(FUNC_SET_ATTRIBUTE_VERSION),
        )

    def supports(self, required: int) -> bool:
        return self.version >= required

    def available_strategies(self):
        """Strategies usable with this version, preferred one first."""
        if self.supports(KERNEL_LAUNCH_VERSION):
            return [LaunchStrategy.PARAMS, LaunchStrategy.EXTRA]
        return [LaunchStrategy.LEGACY]

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(version={self.version}, "
            f"strategy={self.strategy.value!r})"
        )


@functools.cache
def get_dispatcher() -> Dispatcher:
    """Return the process-wide dispatcher, detecting the version once."""
    config = get_config()
    version = config.cuda_version
    if version is None:
        # Deferred import: the device queries need the driver
        from cudabind._cuda.gpu import driverGetVersion

        version = driverGetVersion()
    dispatcher = Dispatcher(version, config.launch_strategy)
    _logger.info(
        "CUDA %s, launch strategy %s",
        format_version(dispatcher.version),
        dispatcher.strategy.value,
    )
    return dispatcher


def reset_dispatcher() -> None:
    """Forget the cached dispatcher. Only meant for tests."""
    get_dispatcher.cache_clear()


def binding(name: str, module=driver):
    """Return the ``cuda.bindings`` entry point ``name``.

    Entry points removed from the installed bindings raise
    :class:`~cudabind.error.CUDAUnsupportedError` instead of
    ``AttributeError``.
    """
    fn = getattr(module, name, None)
    if fn is None:
        raise CUDAUnsupportedError(name)
    return fn


def requires(version: int, name: str | None = None):
    """Decorator gating an operation on the installed CUDA version.

    Below ``version`` every call raises
    :class:`~cudabind.error.CUDAUnsupportedError` and the decorated function
    is never entered.

    Parameters
    ----------
    version
        Minimum native version, encoded as ``1000 * major + 10 * minor``.
    name
        Operation name used in the error message. Defaults to the
        function's name.
    """

    def decorator(func):
        operation = name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            installed = get_dispatcher().version
            if installed < version:
                raise CUDAUnsupportedError(operation, version, installed)
            return func(*args, **kwargs)

        wrapper.required_version = version
        return wrapper

    return decorator


__all__ = [
    "Capabilities",
    "Dispatcher",
    "LaunchStrategy",
    "binding",
    "get_dispatcher",
    "requires",
    "reset_dispatcher",
]
