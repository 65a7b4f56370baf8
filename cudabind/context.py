# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

"""Context management for the driver interface.

A context is bound to a host thread; most driver calls, kernel launches
included, act on the calling thread's current context. This module wraps
context creation and the context stack, per-context configuration, and
peer access between contexts on different devices.
"""

from cuda.bindings import driver

from cudabind.dispatch import (
    BINDINGS_MAJOR_VERSION,
    CONTEXT_CONFIG_VERSION,
    CONTEXT_LIMIT_VERSION,
    KERNEL_LAUNCH_VERSION,
    PEER_ACCESS_VERSION,
    SHARED_MEM_CONFIG_VERSION,
    STREAM_PRIORITY_VERSION,
    binding,
    requires,
)
from cudabind.error import check_status
from cudabind.logger import make_logger

_logger = make_logger()

ContextFlag = driver.CUctx_flags
Limit = driver.CUlimit
Cache = driver.CUfunc_cache
# CUsharedconfig was removed in cuda.bindings 13
SharedMem = getattr(driver, "CUsharedconfig", None)


def _cudevice(device):
    if isinstance(device, driver.CUdevice):
        return device
    return driver.CUdevice(int(device))


class Context:
    """A driver context handle.

    Instances made by :meth:`create` own their context and must be released
    with :meth:`destroy`. Instances returned by :meth:`get_current` and
    :meth:`pop_current` only borrow the handle.
    """

    def __init__(self, handle):
        self._handle = int(handle)

    @property
    def handle(self) -> int:
        return self._handle

    def _cucontext(self):
        return driver.CUcontext(self._handle)

    def __eq__(self, other):
        if not isinstance(other, Context):
            return NotImplemented
        return self._handle == other._handle

    def __hash__(self):
        return hash(self._handle)

    def __repr__(self):
        return f"{self.__class__.__name__}(handle={self._handle:#x})"

    @classmethod
    def create(cls, device, flags=0):
        """Create a context on ``device`` and make it current.

        Parameters
        ----------
        device : int or CUdevice
            Device ordinal.
        flags : ContextFlag or int
            Scheduling and mapping flags.
        """
        if BINDINGS_MAJOR_VERSION >= 13:
            result = driver.cuCtxCreate(None, int(flags), _cudevice(device))
        else:
            result = driver.cuCtxCreate(int(flags), _cudevice(device))
        ctx = cls(check_status(result, "cuCtxCreate"))
        _logger.info("created context %#x on device %s", ctx.handle, device)
        return ctx

    def destroy(self) -> None:
        """Destroy the context, popping it from any thread stack."""
        check_status(driver.cuCtxDestroy(self._cucontext()), "cuCtxDestroy")
        _logger.info("destroyed context %#x", self._handle)

    def push(self) -> None:
        """Push the context onto the calling thread's context stack."""
        check_status(
            driver.cuCtxPushCurrent(self._cucontext()), "cuCtxPushCurrent"
        )

    @classmethod
    def pop_current(cls):
        """Pop and return the calling thread's current context."""
        return cls(check_status(driver.cuCtxPopCurrent(), "cuCtxPopCurrent"))

    @classmethod
    def get_current(cls):
        """Return the current context, or ``None`` if none is bound."""
        ctx = check_status(driver.cuCtxGetCurrent(), "cuCtxGetCurrent")
        if int(ctx) == 0:
            return None
        return cls(ctx)

    @requires(KERNEL_LAUNCH_VERSION, "cuCtxSetCurrent")
    def set_current(self) -> None:
        """Bind the context to the calling thread, replacing the top of the
        context stack."""
        check_status(
            driver.cuCtxSetCurrent(self._cucontext()), "cuCtxSetCurrent"
        )

    @staticmethod
    def get_device() -> int:
        """Return the device ordinal of the current context."""
        return int(check_status(driver.cuCtxGetDevice(), "cuCtxGetDevice"))

    @staticmethod
    def synchronize() -> None:
        """Block until the current context has completed all its work."""
        check_status(driver.cuCtxSynchronize(), "cuCtxSynchronize")

    @requires(CONTEXT_CONFIG_VERSION, "cuCtxGetApiVersion")
    def api_version(self) -> int:
        return check_status(
            driver.cuCtxGetApiVersion(self._cucontext()), "cuCtxGetApiVersion"
        )


# Configuration of the current context


@requires(CONTEXT_LIMIT_VERSION, "cuCtxGetLimit")
def get_limit(limit: Limit) -> int:
    """Return a resource limit of the current context."""
    return check_status(driver.cuCtxGetLimit(Limit(limit)), "cuCtxGetLimit")


@requires(CONTEXT_LIMIT_VERSION, "cuCtxSetLimit")
def set_limit(limit: Limit, value: int) -> None:
    """Set a resource limit of the current context."""
    check_status(driver.cuCtxSetLimit(Limit(limit), value), "cuCtxSetLimit")


@requires(CONTEXT_CONFIG_VERSION, "cuCtxGetCacheConfig")
def get_cache_config() -> Cache:
    return check_status(driver.cuCtxGetCacheConfig(), "cuCtxGetCacheConfig")


@requires(CONTEXT_CONFIG_VERSION, "cuCtxSetCacheConfig")
def set_cache_config(config: Cache) -> None:
    """Set the preferred L1/shared memory split of the current context."""
    check_status(
        driver.cuCtxSetCacheConfig(Cache(config)), "cuCtxSetCacheConfig"
    )


@requires(SHARED_MEM_CONFIG_VERSION, "cuCtxGetSharedMemConfig")
def get_shared_mem_config():
    fn = binding("cuCtxGetSharedMemConfig")
    return check_status(fn(), "cuCtxGetSharedMemConfig")


@requires(SHARED_MEM_CONFIG_VERSION, "cuCtxSetSharedMemConfig")
def set_shared_mem_config(config) -> None:
    """Set the shared memory bank size of the current context."""
    fn = binding("cuCtxSetSharedMemConfig")
    check_status(fn(config), "cuCtxSetSharedMemConfig")


@requires(STREAM_PRIORITY_VERSION, "cuCtxGetStreamPriorityRange")
def get_stream_priority_range():
    """Return ``(least, greatest)`` stream priorities of the current context.

    Lower numbers are higher priorities, so ``greatest <= least``.
    """
    least, greatest = check_status(
        driver.cuCtxGetStreamPriorityRange(), "cuCtxGetStreamPriorityRange"
    )
    return least, greatest


# Peer access


@requires(PEER_ACCESS_VERSION, "cuDeviceCanAccessPeer")
def can_access_peer(device, peer) -> bool:
    """Return True if contexts on ``device`` can access memory on ``peer``."""
    return bool(
        check_status(
            driver.cuDeviceCanAccessPeer(_cudevice(device), _cudevice(peer)),
            "cuDeviceCanAccessPeer",
        )
    )


@requires(PEER_ACCESS_VERSION, "cuCtxEnablePeerAccess")
def add_peer_access(peer: Context, flags: int = 0) -> None:
    """Let the current context access memory allocated in ``peer``."""
    check_status(
        driver.cuCtxEnablePeerAccess(peer._cucontext(), flags),
        "cuCtxEnablePeerAccess",
    )


@requires(PEER_ACCESS_VERSION, "cuCtxDisablePeerAccess")
def remove_peer_access(peer: Context) -> None:
    check_status(
        driver.cuCtxDisablePeerAccess(peer._cucontext()),
        "cuCtxDisablePeerAccess",
    )


__all__ = [
    "Cache",
    "Context",
    "ContextFlag",
    "Limit",
    "SharedMem",
    "add_peer_access",
    "can_access_peer",
    "get_cache_config",
    "get_limit",
    "get_shared_mem_config",
    "get_stream_priority_range",
    "remove_peer_access",
    "set_cache_config",
    "set_limit",
    "set_shared_mem_config",
]
