# SPDX-FileCopyrightText: Copyright (c) 2026, NVIDIA CORPORATION.
# SPDX-License-Identifier: Apache-2.0

from setuptools import find_packages, setup

packages = find_packages(include=["cudabind*"])
setup(
    packages=packages,
    package_data={key: ["VERSION"] for key in packages},
    zip_safe=False,
)
