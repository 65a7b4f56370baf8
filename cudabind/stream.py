# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

from enum import IntEnum

from cuda.bindings import driver

from cudabind.dispatch import STREAM_PRIORITY_VERSION, requires
from cudabind.error import (
    CUDAUsageError,
    check_status,
    query_status,
)


class CudaStreamFlags(IntEnum):
    SYNC_DEFAULT = int(driver.CUstream_flags.CU_STREAM_DEFAULT)
    NON_BLOCKING = int(driver.CUstream_flags.CU_STREAM_NON_BLOCKING)


class Stream:
    """An ordering token for asynchronous device work.

    Parameters
    ----------
    obj : optional
        ``None`` for the default stream, another :class:`Stream`, a raw
        stream handle (``int`` or ``CUstream``), or any object implementing
        the ``__cuda_stream__`` protocol.

    Notes
    -----
    A ``Stream`` only borrows its handle unless it was made by
    :meth:`create`; only those can be destroyed.
    """

    def __init__(self, obj=None):
        if obj is None:
            handle = 0
        elif isinstance(obj, Stream):
            handle = obj.handle
        elif isinstance(obj, int):
            handle = obj
        elif isinstance(obj, driver.CUstream):
            handle = int(obj)
        elif hasattr(obj, "__cuda_stream__"):
            version, handle = obj.__cuda_stream__()
            if version != 0:
                raise NotImplementedError(
                    "Unsupported __cuda_stream__ protocol "
                    f"version: '{version}'"
                )
        else:
            raise TypeError(
                f"cannot make a Stream from a {type(obj).__name__}"
            )
        self._handle = int(handle)
        self._owned = False

    @property
    def handle(self) -> int:
        return self._handle

    def __cuda_stream__(self):
        return (0, self._handle)

    def _custream(self):
        return driver.CUstream(self._handle)

    def __eq__(self, other):
        if not isinstance(other, Stream):
            return NotImplemented
        return self._handle == other._handle

    def __hash__(self):
        return hash(self._handle)

    def __repr__(self):
        return f"{self.__class__.__name__}(handle={self._handle:#x})"

    def is_default(self) -> bool:
        return self._handle in (
            DEFAULT_STREAM.handle,
            LEGACY_DEFAULT_STREAM.handle,
            PER_THREAD_DEFAULT_STREAM.handle,
        )

    def synchronize(self) -> None:
        """Block until all work queued on the stream has completed."""
        check_status(
            driver.cuStreamSynchronize(self._custream()),
            "cuStreamSynchronize",
        )

    def is_done(self) -> bool:
        """Return True if all work queued on the stream has completed."""
        result = driver.cuStreamQuery(self._custream())
        status, _ = query_status(result)
        if status == driver.CUresult.CUDA_ERROR_NOT_READY:
            return False
        check_status(result, "cuStreamQuery")
        return True

    @classmethod
    def create(cls, flags=CudaStreamFlags.SYNC_DEFAULT, priority: int = 0):
        """Create a new stream owned by the returned object.

        Parameters
        ----------
        flags : CudaStreamFlags
            Whether the stream synchronizes with the legacy default stream.
        priority : int
            Stream priority. Lower numbers are higher priorities. Non-zero
            priorities require CUDA 5.5.
        """
        flags = CudaStreamFlags(flags)
        if priority:
            custream = _create_with_priority(flags, priority)
        else:
            custream = check_status(
                driver.cuStreamCreate(int(flags)), "cuStreamCreate"
            )
        stream = cls(custream)
        stream._owned = True
        return stream

    def destroy(self) -> None:
        """Destroy a stream made by :meth:`create`."""
        if not self._owned:
            raise CUDAUsageError(f"{self!r} does not own its handle")
        check_status(
            driver.cuStreamDestroy(self._custream()), "cuStreamDestroy"
        )
        self._owned = False


@requires(STREAM_PRIORITY_VERSION, "cuStreamCreateWithPriority")
def _create_with_priority(flags, priority):
    return check_status(
        driver.cuStreamCreateWithPriority(int(flags), priority),
        "cuStreamCreateWithPriority",
    )


# Well-known handles from cuda.h: CU_STREAM_LEGACY is ((CUstream)0x1),
# CU_STREAM_PER_THREAD is ((CUstream)0x2)
DEFAULT_STREAM = Stream(0)
LEGACY_DEFAULT_STREAM = Stream(0x1)
PER_THREAD_DEFAULT_STREAM = Stream(0x2)


__all__ = [
    "CudaStreamFlags",
    "DEFAULT_STREAM",
    "LEGACY_DEFAULT_STREAM",
    "PER_THREAD_DEFAULT_STREAM",
    "Stream",
]
