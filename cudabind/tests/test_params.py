# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

import ctypes

import numpy as np
import pytest
from cuda.bindings import driver

from cudabind.dispatch import LaunchStrategy
from cudabind.params import (
    CU_LAUNCH_PARAM_BUFFER_POINTER,
    CU_LAUNCH_PARAM_BUFFER_SIZE,
    FloatParam,
    IntParam,
    PackedBuffer,
    PointerArray,
    ValueParam,
    encode_packed,
    encode_pointer_array,
    encoded,
    layout,
    pointer_param,
    to_param,
)


class Vec3(ctypes.Structure):
    _fields_ = [
        ("x", ctypes.c_float),
        ("y", ctypes.c_float),
        ("z", ctypes.c_float),
    ]


def test_int_and_float_scenario():
    enc = encode_pointer_array([IntParam(3), FloatParam(1.5)])
    assert len(enc) == 2
    assert enc.pointee_bytes(0) == np.int32(3).tobytes()
    assert enc.pointee_bytes(1) == np.float32(1.5).tobytes()


@pytest.mark.parametrize("n", [0, 1, 2, 7, 32])
def test_pointer_array_has_one_entry_per_param(n):
    enc = PointerArray([IntParam(i) for i in range(n)])
    assert len(enc) == n
    assert isinstance(enc.pointers, ctypes.Array)
    for i in range(n):
        assert enc.pointee_bytes(i) == np.int32(i).tobytes()


def test_pointer_array_copies_are_distinct():
    enc = PointerArray([IntParam(1), IntParam(1)])
    assert enc.pointers[0] != enc.pointers[1]


def test_empty_pointer_array_is_not_null():
    enc = PointerArray([])
    assert enc.pointers is not None
    assert len(enc.pointers) == 0
    assert enc.address != 0


def test_param_sizes():
    assert IntParam(0).size == 4
    assert IntParam(0).alignment == 4
    assert FloatParam(0.0).size == 4
    assert FloatParam(0.0).alignment == 4
    assert ValueParam(Vec3(1.0, 2.0, 3.0)).size == 12
    assert ValueParam(Vec3(1.0, 2.0, 3.0)).alignment == 4
    assert ValueParam(np.float64(1.0)).size == 8
    assert ValueParam(np.float64(1.0)).alignment == 8
    assert ValueParam(b"\x01\x02\x03").size == 3
    assert ValueParam(b"\x01\x02\x03").alignment == 1


def test_value_param_bytes():
    v = Vec3(1.0, 2.0, 3.0)
    assert ValueParam(v).to_bytes() == bytes(v)
    assert ValueParam(np.int64(-2)).to_bytes() == np.int64(-2).tobytes()
    assert ValueParam(np.array(7, dtype=np.uint16)).size == 2


def test_value_param_copies_its_value():
    v = Vec3(1.0, 2.0, 3.0)
    param = ValueParam(v)
    v.x = 10.0
    assert param.to_bytes() == bytes(Vec3(1.0, 2.0, 3.0))


def test_value_param_explicit_alignment():
    param = ValueParam(b"\x00" * 12, alignment=16)
    assert param.alignment == 16
    with pytest.raises(ValueError):
        ValueParam(b"\x00", alignment=3)
    with pytest.raises(ValueError):
        ValueParam(b"\x00", alignment=0)


def test_value_param_rejects_arrays_and_objects():
    with pytest.raises(TypeError):
        ValueParam(np.zeros(4, dtype=np.float32))
    with pytest.raises(TypeError):
        ValueParam("not bytes")


@pytest.mark.parametrize("value", [2**31, -(2**31) - 1])
def test_int_param_overflow(value):
    with pytest.raises(OverflowError):
        IntParam(value)


def test_int_param_limits():
    assert IntParam(-(2**31)).to_bytes() == np.int32(-(2**31)).tobytes()
    assert IntParam(2**31 - 1).to_bytes() == np.int32(2**31 - 1).tobytes()


def test_to_param():
    assert to_param(3) == IntParam(3)
    assert to_param(True) == IntParam(1)
    assert to_param(1.5) == FloatParam(1.5)
    param = IntParam(4)
    assert to_param(param) is param

    # NumPy scalars keep their own width
    assert to_param(np.float64(1.5)).size == 8
    assert to_param(np.int64(1)).size == 8
    assert to_param(np.uint8(1)).size == 1

    assert to_param(ctypes.c_double(2.0)).size == 8

    with pytest.raises(TypeError):
        to_param("string")
    with pytest.raises(TypeError):
        to_param(None)


def test_to_param_device_pointers():
    ptr = to_param(driver.CUdeviceptr(0xDEADBEEF))
    assert ptr.size == 8
    assert ptr.to_bytes() == np.uint64(0xDEADBEEF).tobytes()

    class DeviceArray:
        __cuda_array_interface__ = {
            "shape": (4,),
            "typestr": "<f4",
            "data": (0x7F0000001000, False),
            "version": 3,
        }

    param = to_param(DeviceArray())
    assert param == pointer_param(0x7F0000001000)


def test_layout_naturally_aligned():
    params = [IntParam(1), FloatParam(2.0), ValueParam(Vec3(1, 2, 3))]
    offsets, size = layout(params)
    assert offsets == [0, 4, 8]
    assert size == sum(p.size for p in params)


def test_layout_pads_only_for_alignment():
    params = [IntParam(1), ValueParam(np.float64(2.0)), ValueParam(b"\x01")]
    offsets, size = layout(params)
    assert offsets == [0, 8, 16]
    assert size == 17


def test_layout_empty():
    assert layout([]) == ([], 0)


def test_packed_buffer_contents():
    params = [IntParam(3), FloatParam(1.5)]
    packed = encode_packed(params)
    assert packed.size == 8
    assert packed.to_bytes() == (
        np.int32(3).tobytes() + np.float32(1.5).tobytes()
    )


def test_packed_buffer_padding_is_zero():
    packed = PackedBuffer([ValueParam(b"\xff"), IntParam(-1)])
    assert packed.to_bytes() == b"\xff\x00\x00\x00\xff\xff\xff\xff"


def test_packed_buffer_extra_table():
    packed = PackedBuffer([IntParam(3), FloatParam(1.5)])
    extra = list(packed.extra)
    assert len(extra) == 5
    assert extra[0] == CU_LAUNCH_PARAM_BUFFER_POINTER
    assert extra[1] == ctypes.addressof(packed.buffer)
    assert extra[2] == CU_LAUNCH_PARAM_BUFFER_SIZE
    assert ctypes.c_size_t.from_address(extra[3]).value == 8
    # CU_LAUNCH_PARAM_END is NULL, which ctypes reads back as None
    assert extra[4] is None


def test_empty_packed_buffer():
    packed = PackedBuffer([])
    assert packed.size == 0
    assert packed.to_bytes() == b""
    assert list(packed.extra)[2] == CU_LAUNCH_PARAM_BUFFER_SIZE


def test_encoding_is_deterministic():
    params = [IntParam(7), ValueParam(np.float64(0.25)), FloatParam(-1.0)]
    assert PackedBuffer(params).to_bytes() == PackedBuffer(params).to_bytes()

    a = PointerArray(params)
    b = PointerArray(params)
    assert [a.pointee_bytes(i) for i in range(3)] == [
        b.pointee_bytes(i) for i in range(3)
    ]


@pytest.mark.parametrize(
    "strategy, cls",
    [
        (LaunchStrategy.PARAMS, PointerArray),
        (LaunchStrategy.EXTRA, PackedBuffer),
        (LaunchStrategy.LEGACY, PackedBuffer),
        ("params", PointerArray),
    ],
)
def test_encoded_strategy(strategy, cls):
    with encoded([IntParam(1)], strategy) as enc:
        assert isinstance(enc, cls)


def test_encoded_releases_on_exit():
    with encoded([IntParam(1), IntParam(2)]) as enc:
        assert len(enc) == 2
    assert len(enc) == 0

    with encoded([IntParam(1)], LaunchStrategy.EXTRA) as packed:
        assert packed.size == 4
    assert packed.size == 0


def test_encoded_releases_on_error():
    with pytest.raises(RuntimeError):
        with encoded([IntParam(1)]) as enc:
            raise RuntimeError("native call failed")
    assert len(enc) == 0
