# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

"""Status decoding and the cudabind error taxonomy.

Every native call made by cudabind funnels its status through this module.
Two calling conventions are provided:

* :func:`check_status` raises on any non-success status and returns the
  values produced by the call.
* :func:`query_status` never raises and returns the decoded status together
  with the values, for operations whose failure is an expected answer.
"""

from cuda.bindings import driver, runtime

from cudabind.logger import make_logger

_logger = make_logger()


def format_version(version: int) -> str:
    """Format a ``1000 * major + 10 * minor`` version as ``major.minor``."""
    return f"{version // 1000}.{(version % 1000) // 10}"


class CUDAError(RuntimeError):
    """Base class of every error raised by cudabind."""


class CUDADriverError(CUDAError):
    def __init__(self, status: driver.CUresult, operation: str | None = None):
        self.status = decode_driver_status(status)
        self.operation = operation
        if operation is None:
            msg = self.status.name
        else:
            msg = f"Call to {operation} results in {self.status.name}"
        super(CUDADriverError, self).__init__(msg)

    def describe(self) -> str:
        """Return the driver's description of the status."""
        _, msg = driver.cuGetErrorString(self.status)
        return msg.decode()

    def __reduce__(self):
        return (type(self), (self.status, self.operation))


class CUDARuntimeError(CUDAError):
    def __init__(
        self, status: runtime.cudaError_t, operation: str | None = None
    ):
        self.status = decode_runtime_status(status)
        self.operation = operation
        if operation is None:
            msg = self.status.name
        else:
            msg = f"Call to {operation} results in {self.status.name}"
        super(CUDARuntimeError, self).__init__(msg)

    def describe(self) -> str:
        """Return the runtime's description of the status."""
        _, msg = runtime.cudaGetErrorString(self.status)
        return msg.decode()

    def __reduce__(self):
        return (type(self), (self.status, self.operation))


class CUDAUnsupportedError(CUDAError):
    """An operation is not available with the installed native library.

    Raised before any native call is attempted, either because the
    installed version is below the operation's threshold or because the
    loaded library does not export the entry point.
    """

    def __init__(
        self,
        operation: str,
        required: int | None = None,
        installed: int | None = None,
    ):
        self.operation = operation
        self.required = required
        self.installed = installed
        if required is None:
            msg = f"{operation} is not supported by the installed CUDA driver"
        else:
            msg = (
                f"{operation} requires CUDA {format_version(required)} "
                f"or later"
            )
            if installed is not None:
                msg += f" (installed: {format_version(installed)})"
        super(CUDAUnsupportedError, self).__init__(msg)

    def __reduce__(self):
        return (type(self), (self.operation, self.required, self.installed))


class CUDAUsageError(CUDAError):
    """The caller asked for something this installation cannot express."""


def decode_driver_status(code) -> driver.CUresult:
    """Map a native driver result code to ``CUresult``.

    Codes outside the enumeration decode to ``CUDA_ERROR_UNKNOWN``.
    """
    if isinstance(code, driver.CUresult):
        return code
    try:
        return driver.CUresult(int(code))
    except ValueError:
        return driver.CUresult.CUDA_ERROR_UNKNOWN


def decode_runtime_status(code) -> runtime.cudaError_t:
    """Map a native runtime result code to ``cudaError_t``.

    Codes outside the enumeration decode to ``cudaErrorUnknown``.
    """
    if isinstance(code, runtime.cudaError_t):
        return code
    try:
        return runtime.cudaError_t(int(code))
    except ValueError:
        return runtime.cudaError_t.cudaErrorUnknown


def is_success(status) -> bool:
    if isinstance(status, runtime.cudaError_t):
        return status == runtime.cudaError_t.cudaSuccess
    return decode_driver_status(status) == driver.CUresult.CUDA_SUCCESS


def _split(result):
    # cuda.bindings calls return (status, *values); ctypes calls return
    # the bare status
    if isinstance(result, tuple):
        status, values = result[0], result[1:]
    else:
        status, values = result, ()
    if not isinstance(status, runtime.cudaError_t):
        status = decode_driver_status(status)

    if len(values) == 0:
        value = None
    elif len(values) == 1:
        value = values[0]
    else:
        value = values
    return status, value


def query_status(result):
    """Decode the status of a native call without raising.

    Parameters
    ----------
    result
        Either a bare status code or the ``(status, *values)`` tuple returned
        by a ``cuda.bindings`` call.

    Returns
    -------
    A ``(status, value)`` pair. ``value`` is ``None`` when the call failed or
    produced nothing, the single value if there is one, and the tuple of
    values otherwise.
    """
    status, value = _split(result)
    if not is_success(status):
        value = None
    return status, value


def check_status(result, operation: str | None = None):
    """Decode the status of a native call, raising on failure.

    Parameters
    ----------
    result
        Either a bare status code or the ``(status, *values)`` tuple returned
        by a ``cuda.bindings`` call.
    operation
        Name of the native entry point, used in the error message.

    Returns
    -------
    ``None``, the single value, or the tuple of values produced by the call.

    Raises
    ------
    CUDADriverError
        If a driver status is not ``CUDA_SUCCESS``.
    CUDARuntimeError
        If a runtime status is not ``cudaSuccess``.
    """
    status, value = _split(result)
    if is_success(status):
        return value

    if isinstance(status, runtime.cudaError_t):
        err = CUDARuntimeError(status, operation)
    else:
        err = CUDADriverError(status, operation)
    _logger.error(str(err))
    raise err


__all__ = [
    "CUDADriverError",
    "CUDAError",
    "CUDARuntimeError",
    "CUDAUnsupportedError",
    "CUDAUsageError",
    "check_status",
    "decode_driver_status",
    "decode_runtime_status",
    "format_version",
    "is_success",
    "query_status",
]
