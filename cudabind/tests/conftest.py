# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

import os
from collections.abc import Generator

import pytest
from test_helpers import (
    ALL_SYMBOLS,
    FakeBindings,
    FakeDriverLibrary,
    RecordingHandler,
)

import cudabind._native
import cudabind.config
import cudabind.dispatch
import cudabind.logger


@pytest.fixture(scope="function", autouse=True)
def cudabind_auto_reset(monkeypatch) -> Generator[None, None, None]:
    # Every test starts from a clean environment and a CUDA 12.4 driver, so
    # that no test queries the real driver for its version
    for name in list(os.environ):
        if name.startswith("CUDABIND_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("CUDABIND_CUDA_VERSION", "12040")
    cudabind.config.reload_config()
    cudabind.dispatch.reset_dispatcher()

    # Run the test
    yield

    cudabind.config.get_config.cache_clear()
    cudabind.dispatch.reset_dispatcher()


@pytest.fixture
def cuda_version(monkeypatch):
    """Fixture that pretends the installed driver has a given version"""

    def _cuda_version(version, strategy=None):
        monkeypatch.setenv("CUDABIND_CUDA_VERSION", str(version))
        if strategy is None:
            monkeypatch.delenv("CUDABIND_LAUNCH_STRATEGY", raising=False)
        else:
            monkeypatch.setenv("CUDABIND_LAUNCH_STRATEGY", strategy)
        cudabind.config.reload_config()
        cudabind.dispatch.reset_dispatcher()
        return cudabind.dispatch.get_dispatcher()

    return _cuda_version


@pytest.fixture
def fake_libcuda(monkeypatch) -> FakeDriverLibrary:
    """Fixture that replaces the driver library with a recording fake"""
    lib = FakeDriverLibrary(ALL_SYMBOLS)
    monkeypatch.setattr(cudabind._native, "driver_library", lambda: lib)
    return lib


@pytest.fixture
def fake_bindings(monkeypatch) -> FakeBindings:
    """Fixture for replacing cuda.bindings driver entry points"""
    return FakeBindings(monkeypatch)


@pytest.fixture
def log_records() -> Generator[RecordingHandler, None, None]:
    """Fixture collecting the records emitted on the cudabind logger"""
    logger = cudabind.logger.make_logger()
    handler = RecordingHandler()
    logger.addHandler(handler)
    level = cudabind.logger.get_logging_level()
    yield handler
    cudabind.logger.set_logging_level(level)
    logger.removeHandler(handler)
