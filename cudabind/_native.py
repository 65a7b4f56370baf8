# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

"""ctypes access to driver entry points that take raw argument tables.

``cuda.bindings`` covers most of the driver API, but the launch entry points
receive ``void**`` tables built by :mod:`cudabind.params`, and the legacy
launch sequence is not exposed by ``cuda.bindings`` at all. Those entry
points are bound here with explicit prototypes.
"""

import ctypes
import functools
import logging
import os
from ctypes import POINTER, c_int, c_uint, c_void_p
from ctypes.util import find_library

from cudabind.config import get_config
from cudabind.error import CUDAUnsupportedError, check_status
from cudabind.logger import make_logger

_logger = make_logger()

_CUresult = c_int

_PROTOTYPES = {
    "cuLaunchKernel": [
        c_void_p,  # function
        c_uint, c_uint, c_uint,  # grid
        c_uint, c_uint, c_uint,  # block
        c_uint,  # shared memory
        c_void_p,  # stream
        POINTER(c_void_p),  # kernelParams
        POINTER(c_void_p),  # extra
    ],
    "cuLaunchCooperativeKernel": [
        c_void_p,
        c_uint, c_uint, c_uint,
        c_uint, c_uint, c_uint,
        c_uint,
        c_void_p,
        POINTER(c_void_p),
    ],
    "cuParamSetSize": [c_void_p, c_uint],
    "cuParamSetv": [c_void_p, c_int, c_void_p, c_uint],
    "cuFuncSetBlockShape": [c_void_p, c_int, c_int, c_int],
    "cuFuncSetSharedSize": [c_void_p, c_uint],
    "cuLaunchGrid": [c_void_p, c_int, c_int],
    "cuLaunchGridAsync": [c_void_p, c_int, c_int, c_void_p],
}  # fmt: skip


def _candidates():
    config = get_config()
    if config.libcuda:
        return [config.libcuda]
    if os.name == "nt":
        return ["nvcuda.dll"]
    names = ["libcuda.so.1", "libcuda.so"]
    path = find_library("cuda")
    if path:
        names.append(path)
    return names


@functools.cache
def driver_library():
    """Load the CUDA driver library once per process."""
    loader = ctypes.WinDLL if os.name == "nt" else ctypes.CDLL
    last_err = None
    for name in _candidates():
        try:
            lib = loader(name)
        except OSError as e:
            last_err = e
        else:
            _logger.info("loaded CUDA driver library %s", name)
            return lib
    raise OSError(
        "Could not load the CUDA driver library; set CUDABIND_LIBCUDA to "
        "its path"
    ) from last_err


def has_entry_point(name: str) -> bool:
    return hasattr(driver_library(), name)


def entry_point(name: str):
    """Return the prototyped entry point ``name``.

    Raises
    ------
    CUDAUnsupportedError
        If the loaded driver does not export ``name``.
    """
    lib = driver_library()
    try:
        fn = getattr(lib, name)
    except AttributeError:
        raise CUDAUnsupportedError(name) from None
    fn.argtypes = _PROTOTYPES[name]
    fn.restype = _CUresult
    return fn


def call(name: str, *args):
    """Call the entry point ``name``, raising on a non-success status."""
    fn = entry_point(name)
    if _logger.isEnabledFor(logging.DEBUG):
        _logger.debug(
            "call driver api: %s(%s)", name, ", ".join(str(a) for a in args)
        )
    return check_status(fn(*args), name)
