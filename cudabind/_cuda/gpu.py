# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

from cuda.bindings import driver, runtime

from cudabind.error import check_status


def driverGetVersion():
    """
    Returns the latest version of CUDA supported by the driver.
    The version is returned as (1000 major + 10 minor). For example,
    CUDA 9.2 would be represented by 9020.

    This function queries the driver API directly, so it does not create
    a runtime context. It raises CUDADriverError on failure.
    """
    return check_status(driver.cuDriverGetVersion(), "cuDriverGetVersion")


def runtimeGetVersion():
    """
    Returns the version number of the local CUDA runtime.

    The version is returned as ``(1000 * major + 10 * minor)``. For example,
    CUDA 12.5 would be represented by 12050.

    This function automatically raises CUDARuntimeError with error message
    and status code.
    """
    return check_status(
        runtime.getLocalRuntimeVersion(), "getLocalRuntimeVersion"
    )


def getDevice():
    """
    Get the current CUDA device
    """
    return check_status(runtime.cudaGetDevice(), "cudaGetDevice")


def setDevice(device: int):
    """
    Set the current CUDA device

    Parameters
    ----------
    device : int
        The ID of the device to set as current
    """
    check_status(runtime.cudaSetDevice(device), "cudaSetDevice")


def getDeviceCount():
    """
    Returns the number of devices available for execution.

    This function automatically raises CUDADriverError with error message
    and status code.
    """
    return check_status(driver.cuDeviceGetCount(), "cuDeviceGetCount")


def getDeviceAttribute(attr: driver.CUdevice_attribute, device: int):
    """
    Returns information about the device.

    Parameters
    ----------
        attr : CUdevice_attribute
            Device attribute to query
        device : int
            Device number to query

    This function automatically raises CUDADriverError with error message
    and status code.
    """
    return check_status(
        driver.cuDeviceGetAttribute(attr, driver.CUdevice(device)),
        "cuDeviceGetAttribute",
    )


def deviceGetName(device: int):
    """
    Returns an identifier string for the device.

    Parameters
    ----------
        device : int
            Device number to query

    This function automatically raises CUDADriverError with error message
    and status code.
    """
    device_name = check_status(
        driver.cuDeviceGetName(256, driver.CUdevice(device)),
        "cuDeviceGetName",
    )
    return device_name.split(b"\0", 1)[0].decode()
