# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

"""Kernel launch parameters and their native encodings.

A kernel's arguments are given as an ordered sequence of
:class:`LaunchParam`. Each parameter knows its native size and alignment.
Nothing here can check the sequence against the kernel's compiled
signature: a mismatch is a fault on the device side, not a decodable error.

Two encodings are provided:

* :class:`PointerArray` holds one separately allocated copy of each
  parameter and a ``void*[]`` table pointing at them, as consumed by the
  ``kernelParams`` argument of ``cuLaunchKernel``.
* :class:`PackedBuffer` concatenates the parameters into one buffer at
  aligned offsets and describes it with the sentinel-terminated ``extra``
  table of ``cuLaunchKernel``. The legacy ``cuParamSet*`` sequence uses the
  same offsets.
"""

import ctypes
from abc import ABC, abstractmethod
from contextlib import contextmanager

import numpy as np
from cuda.bindings import driver

from cudabind.dispatch import LaunchStrategy

CU_LAUNCH_PARAM_END = 0x00
CU_LAUNCH_PARAM_BUFFER_POINTER = 0x01
CU_LAUNCH_PARAM_BUFFER_SIZE = 0x02

_CTYPES_DATA = (
    ctypes._SimpleCData,
    ctypes.Structure,
    ctypes.Union,
    ctypes.Array,
)


class LaunchParam(ABC):
    """One kernel argument."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Size of the native representation, in bytes."""

    @property
    @abstractmethod
    def alignment(self) -> int:
        """Required alignment of the native representation, in bytes."""

    @abstractmethod
    def to_ctype(self):
        """Return a fresh ctypes object holding the native representation."""

    def to_bytes(self) -> bytes:
        return bytes(self.to_ctype())

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self):
        return hash((type(self), self.to_bytes()))


class IntParam(LaunchParam):
    """A 32-bit signed integer argument."""

    _MIN = -(2**31)
    _MAX = 2**31 - 1

    def __init__(self, value: int):
        value = int(value)
        if not self._MIN <= value <= self._MAX:
            raise OverflowError(
                f"{value} does not fit in a 32-bit signed integer"
            )
        self.value = value

    @property
    def size(self) -> int:
        return ctypes.sizeof(ctypes.c_int32)

    @property
    def alignment(self) -> int:
        return ctypes.alignment(ctypes.c_int32)

    def to_ctype(self):
        return ctypes.c_int32(self.value)

    def __repr__(self):
        return f"IntParam({self.value})"


class FloatParam(LaunchParam):
    """A single-precision floating point argument."""

    def __init__(self, value: float):
        self.value = float(value)

    @property
    def size(self) -> int:
        return ctypes.sizeof(ctypes.c_float)

    @property
    def alignment(self) -> int:
        return ctypes.alignment(ctypes.c_float)

    def to_ctype(self):
        return ctypes.c_float(self.value)

    def __repr__(self):
        return f"FloatParam({self.value})"


class ValueParam(LaunchParam):
    """An argument of arbitrary fixed size, passed by value.

    Parameters
    ----------
    value
        A ctypes instance (scalar, structure, union or array), a NumPy
        scalar or 0-d array, or a bytes-like object.
    alignment : int, optional
        Alignment of the native representation. Defaults to the natural
        alignment of ctypes and NumPy values, and to 1 for raw bytes.
    """

    def __init__(self, value, alignment: int | None = None):
        if isinstance(value, _CTYPES_DATA):
            raw = bytes(value)
            natural = ctypes.alignment(value)
        elif isinstance(value, (np.generic, np.ndarray)):
            arr = np.asarray(value)
            if arr.ndim != 0:
                raise TypeError(
                    "only NumPy scalars and 0-d arrays can be passed by "
                    f"value, got an array of shape {arr.shape}"
                )
            raw = arr.tobytes()
            natural = arr.dtype.alignment
        elif isinstance(value, (bytes, bytearray, memoryview)):
            raw = bytes(value)
            natural = 1
        else:
            raise TypeError(
                f"cannot pass a {type(value).__name__} by value to a kernel"
            )

        if alignment is None:
            alignment = natural
        if alignment <= 0 or alignment & (alignment - 1):
            raise ValueError(f"alignment must be a power of two: {alignment}")

        self._raw = raw
        self._alignment = alignment

    @property
    def size(self) -> int:
        return len(self._raw)

    @property
    def alignment(self) -> int:
        return self._alignment

    def to_ctype(self):
        return (ctypes.c_ubyte * len(self._raw)).from_buffer_copy(self._raw)

    def to_bytes(self) -> bytes:
        return self._raw

    def __repr__(self):
        return (
            f"ValueParam(size={self.size}, alignment={self.alignment}, "
            f"raw={self._raw!r})"
        )


def pointer_param(ptr) -> ValueParam:
    """Wrap a device address as a 64-bit pointer argument."""
    return ValueParam(ctypes.c_uint64(int(ptr)))


def to_param(value) -> LaunchParam:
    """Coerce a Python value to a :class:`LaunchParam`.

    ``bool`` and ``int`` become :class:`IntParam`, ``float`` becomes
    :class:`FloatParam`. Device pointers (``CUdeviceptr`` and objects
    exposing ``__cuda_array_interface__``) are passed as 64-bit addresses.
    NumPy scalars and ctypes instances are passed by value with their own
    size, so ``np.float64(1.0)`` is a double and ``np.int64(1)`` a 64-bit
    integer.
    """
    if isinstance(value, LaunchParam):
        return value
    # NumPy scalars first: np.float64 subclasses float
    if isinstance(value, (np.generic, np.ndarray)) or isinstance(
        value, _CTYPES_DATA
    ):
        return ValueParam(value)
    if isinstance(value, (bool, int)):
        return IntParam(value)
    if isinstance(value, float):
        return FloatParam(value)
    if isinstance(value, driver.CUdeviceptr):
        return pointer_param(value)
    if hasattr(value, "__cuda_array_interface__"):
        return pointer_param(value.__cuda_array_interface__["data"][0])
    raise TypeError(
        f"cannot convert a {type(value).__name__} to a kernel parameter"
    )


def _align_up(offset: int, alignment: int) -> int:
    return (offset + alignment - 1) // alignment * alignment


def layout(params):
    """Compute the packed layout of a parameter sequence.

    Returns
    -------
    A ``(offsets, total_size)`` pair. Each offset is the end of the previous
    parameter rounded up to the parameter's alignment.
    """
    offsets = []
    offset = 0
    for param in params:
        offset = _align_up(offset, param.alignment)
        offsets.append(offset)
        offset += param.size
    return offsets, offset


class PointerArray:
    """``kernelParams`` encoding: one pointer per parameter copy.

    The table always has exactly one entry per parameter and is a valid
    zero-length array when there are no parameters.
    """

    def __init__(self, params):
        self.params = [to_param(p) for p in params]
        self._storage = [p.to_ctype() for p in self.params]
        self.pointers = (ctypes.c_void_p * len(self._storage))(
            *(ctypes.addressof(s) for s in self._storage)
        )

    def __len__(self):
        return len(self.pointers)

    @property
    def address(self) -> int:
        return ctypes.addressof(self.pointers)

    def pointee_bytes(self, index: int) -> bytes:
        """Return the native bytes the ``index``-th pointer refers to."""
        return ctypes.string_at(
            self.pointers[index], self.params[index].size
        )

    def release(self):
        self._storage = []
        self.pointers = (ctypes.c_void_p * 0)()


class PackedBuffer:
    """``extra`` encoding: one buffer of all parameters at aligned offsets."""

    def __init__(self, params):
        self.params = [to_param(p) for p in params]
        self.offsets, size = layout(self.params)

        data = bytearray(size)
        for param, offset in zip(self.params, self.offsets):
            data[offset : offset + param.size] = param.to_bytes()

        self.buffer = (ctypes.c_ubyte * size).from_buffer_copy(data)
        self._size = ctypes.c_size_t(size)
        self.extra = (ctypes.c_void_p * 5)(
            CU_LAUNCH_PARAM_BUFFER_POINTER,
            ctypes.addressof(self.buffer),
            CU_LAUNCH_PARAM_BUFFER_SIZE,
            ctypes.addressof(self._size),
            CU_LAUNCH_PARAM_END,
        )

    @property
    def size(self) -> int:
        return self._size.value

    def to_bytes(self) -> bytes:
        return bytes(self.buffer)

    def release(self):
        self.buffer = (ctypes.c_ubyte * 0)()
        self._size = ctypes.c_size_t(0)
        self.extra = (ctypes.c_void_p * 1)(CU_LAUNCH_PARAM_END)


def encode_pointer_array(params) -> PointerArray:
    """Encode ``params`` as a ``kernelParams`` table."""
    return PointerArray(params)


def encode_packed(params) -> PackedBuffer:
    """Encode ``params`` as one packed buffer and its ``extra`` table."""
    return PackedBuffer(params)


@contextmanager
def encoded(params, strategy=LaunchStrategy.PARAMS):
    """Encode ``params`` for the duration of one native call.

    Yields a :class:`PointerArray` for ``PARAMS`` and a :class:`PackedBuffer`
    for ``EXTRA`` and ``LEGACY``. The scratch memory is released when the
    block exits, whether or not the call raised.
    """
    strategy = LaunchStrategy(strategy)
    if strategy is LaunchStrategy.PARAMS:
        enc = encode_pointer_array(params)
    else:
        enc = encode_packed(params)
    try:
        yield enc
    finally:
        enc.release()


__all__ = [
    "CU_LAUNCH_PARAM_BUFFER_POINTER",
    "CU_LAUNCH_PARAM_BUFFER_SIZE",
    "CU_LAUNCH_PARAM_END",
    "FloatParam",
    "IntParam",
    "LaunchParam",
    "PackedBuffer",
    "PointerArray",
    "ValueParam",
    "encode_packed",
    "encode_pointer_array",
    "encoded",
    "layout",
    "pointer_param",
    "to_param",
]
