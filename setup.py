#!/usr/bin/python3
# Setup file for gitrepo
# Copyright (C) 2025 The gitrepo contributors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

tests_require = ["pytest"]


setup(
    name="gitrepo",
    version="0.1.0",
    description="Content-addressed Git object repositories and dereferencing",
    license="Apache-2.0 OR GPL-2.0-or-later",
    python_requires=">=3.10",
    packages=["gitrepo"],
    package_data={"": ["py.typed"]},
    install_requires=[],
    extras_require={"test": tests_require},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "Topic :: Software Development :: Version Control :: Git",
    ],
)
