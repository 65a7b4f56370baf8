# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

"""Kernel execution.

Kernels are launched through the call sequence chosen once by the
dispatcher (see :mod:`cudabind.dispatch`). The calling thread must have a
current context, and the kernel handle must belong to it; neither is checked
here. Launches are asynchronous with respect to the host: faults in the
kernel itself surface on a later synchronizing call.
"""

import ctypes

from cuda.bindings import driver

from cudabind import _native
from cudabind.dispatch import (
    COOPERATIVE_LAUNCH_VERSION,
    FUNC_CACHE_CONFIG_VERSION,
    FUNC_SET_ATTRIBUTE_VERSION,
    KERNEL_LAUNCH_VERSION,
    SHARED_MEM_CONFIG_VERSION,
    LaunchStrategy,
    binding,
    get_dispatcher,
    requires,
)
from cudabind.error import CUDAUsageError, check_status
from cudabind.params import encoded
from cudabind.stream import Stream

FunAttribute = driver.CUfunction_attribute
FuncCache = driver.CUfunc_cache


def _dim3(dims, what: str):
    if isinstance(dims, int):
        dims = (dims,)
    dims = tuple(int(d) for d in dims)
    if not 1 <= len(dims) <= 3:
        raise ValueError(f"{what} must have 1 to 3 dimensions, got {dims}")
    return dims + (1,) * (3 - len(dims))


def _function_handle(fun) -> int:
    return fun if isinstance(fun, int) else int(fun)


def _cufunction(fun):
    if isinstance(fun, driver.CUfunction):
        return fun
    return driver.CUfunction(_function_handle(fun))


def launch_kernel(fun, grid, block, shared_mem=0, stream=None, params=()):
    """Launch a kernel.

    Parameters
    ----------
    fun : CUfunction or int
        Kernel handle, borrowed for the duration of the call.
    grid, block : int or tuple of int
        Grid and block dimensions. Missing trailing dimensions are 1.
    shared_mem : int
        Dynamic shared memory per block, in bytes.
    stream : Stream, optional
        Stream to launch on. ``None`` is the default stream.
    params : sequence
        Kernel arguments, in order. Each item is a
        :class:`~cudabind.params.LaunchParam` or a value accepted by
        :func:`~cudabind.params.to_param`.

    Raises
    ------
    CUDAUsageError
        If the installation uses the legacy launch sequence and the grid
        has a z dimension other than 1.
    CUDADriverError
        If a native call fails.
    """
    strategy = get_dispatcher().strategy
    if strategy is LaunchStrategy.LEGACY:
        _launch_legacy(fun, grid, block, shared_mem, stream, params)
    else:
        _launch(fun, grid, block, shared_mem, stream, params, strategy)


@requires(KERNEL_LAUNCH_VERSION, "cuLaunchKernel")
def launch_kernel_extra(
    fun, grid, block, shared_mem=0, stream=None, params=()
):
    """Launch a kernel passing its arguments as one packed buffer.

    Takes the same arguments as :func:`launch_kernel`.
    """
    _launch(
        fun, grid, block, shared_mem, stream, params, LaunchStrategy.EXTRA
    )


def _launch(fun, grid, block, shared_mem, stream, params, strategy):
    grid = _dim3(grid, "grid")
    block = _dim3(block, "block")
    with encoded(params, strategy) as enc:
        if strategy is LaunchStrategy.PARAMS:
            kernel_params, extra = enc.pointers, None
        else:
            kernel_params, extra = None, enc.extra
        _native.call(
            "cuLaunchKernel",
            _function_handle(fun),
            *grid,
            *block,
            shared_mem,
            Stream(stream).handle,
            kernel_params,
            extra,
        )


@requires(COOPERATIVE_LAUNCH_VERSION, "cuLaunchCooperativeKernel")
def launch_cooperative_kernel(
    fun, grid, block, shared_mem=0, stream=None, params=()
):
    """Launch a kernel whose blocks may synchronize with each other.

    Takes the same arguments as :func:`launch_kernel`. The grid must fit on
    the device at once; the driver rejects it otherwise.
    """
    grid = _dim3(grid, "grid")
    block = _dim3(block, "block")
    with encoded(params, LaunchStrategy.PARAMS) as enc:
        _native.call(
            "cuLaunchCooperativeKernel",
            _function_handle(fun),
            *grid,
            *block,
            shared_mem,
            Stream(stream).handle,
            enc.pointers,
        )


def _launch_legacy(fun, grid, block, shared_mem, stream, params):
    # Validate before touching any per-function launch state
    gx, gy, gz = _dim3(grid, "grid")
    block = _dim3(block, "block")
    if gz != 1:
        raise CUDAUsageError(
            "The legacy launch sequence cannot express a grid z dimension "
            f"(got {gz}); check Capabilities.grid_z"
        )
    set_params(fun, params)
    set_shared_size(fun, shared_mem)
    set_block_shape(fun, block)
    launch_grid(fun, (gx, gy), stream)


def set_params(fun, params):
    """Set the arguments of the next legacy launch of ``fun``."""
    f = _function_handle(fun)
    with encoded(params, LaunchStrategy.LEGACY) as enc:
        base = ctypes.addressof(enc.buffer)
        for param, offset in zip(enc.params, enc.offsets):
            _native.call("cuParamSetv", f, offset, base + offset, param.size)
        _native.call("cuParamSetSize", f, enc.size)


def set_shared_size(fun, nbytes: int):
    """Set the dynamic shared memory of the next legacy launch of ``fun``."""
    _native.call("cuFuncSetSharedSize", _function_handle(fun), nbytes)


def set_block_shape(fun, block):
    """Set the block shape of the next legacy launch of ``fun``."""
    _native.call(
        "cuFuncSetBlockShape", _function_handle(fun), *_dim3(block, "block")
    )


def launch_grid(fun, grid, stream=None):
    """Launch ``fun`` with the state set by the legacy setters.

    ``cuLaunchGridAsync`` has no z dimension: a grid with ``z != 1`` raises
    :class:`~cudabind.error.CUDAUsageError`.
    """
    gx, gy, gz = _dim3(grid, "grid")
    if gz != 1:
        raise CUDAUsageError(
            f"cuLaunchGridAsync cannot express a grid z dimension (got {gz})"
        )
    _native.call(
        "cuLaunchGridAsync",
        _function_handle(fun),
        gx,
        gy,
        Stream(stream).handle,
    )


def requires_attribute(fun, attr: FunAttribute) -> int:
    """Return the value of a function attribute, e.g. its register count."""
    return check_status(
        driver.cuFuncGetAttribute(FunAttribute(attr), _cufunction(fun)),
        "cuFuncGetAttribute",
    )


@requires(FUNC_CACHE_CONFIG_VERSION, "cuFuncSetCacheConfig")
def set_cache_config_fun(fun, pref: FuncCache):
    """Set the preferred L1/shared memory split for ``fun``."""
    check_status(
        driver.cuFuncSetCacheConfig(_cufunction(fun), FuncCache(pref)),
        "cuFuncSetCacheConfig",
    )


@requires(SHARED_MEM_CONFIG_VERSION, "cuFuncSetSharedMemConfig")
def set_shared_mem_config_fun(fun, config):
    """Set the shared memory bank size for ``fun``."""
    fn = binding("cuFuncSetSharedMemConfig")
    check_status(fn(_cufunction(fun), config), "cuFuncSetSharedMemConfig")


@requires(FUNC_SET_ATTRIBUTE_VERSION, "cuFuncSetAttribute")
def set_attribute(fun, attr: FunAttribute, value: int):
    """Set a function attribute, e.g. its maximum dynamic shared memory."""
    check_status(
        driver.cuFuncSetAttribute(_cufunction(fun), FunAttribute(attr), value),
        "cuFuncSetAttribute",
    )


__all__ = [
    "FunAttribute",
    "FuncCache",
    "launch_cooperative_kernel",
    "launch_grid",
    "launch_kernel",
    "launch_kernel_extra",
    "requires_attribute",
    "set_attribute",
    "set_block_shape",
    "set_cache_config_fun",
    "set_params",
    "set_shared_mem_config_fun",
    "set_shared_size",
]
