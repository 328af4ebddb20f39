from __future__ import annotations

import os

from setuptools import find_packages, setup


def read_version() -> str:
    """Read the version, preferring the PKG_VERSION environment variable."""
    env_version = os.getenv("PKG_VERSION", "").strip()
    if env_version:
        return env_version.lstrip("v")
    return "0.0.1"


setup(
    name="packed-bloom",
    version=read_version(),
    description="Space-efficient Bloom filter backed by a packed bit field.",
    long_description="Space-efficient Bloom filter backed by a packed bit field.",
    long_description_content_type="text/plain",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[],
)
