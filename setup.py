#!/usr/bin/env python3
"""FleetDeploy - Setup"""

from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

setup(
    name="fleetdeploy",
    version="1.0.0",
    description="Concurrent installer for device fleets over SSH",
    author="FleetDeploy Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"fleetdeploy": ["templates/*.j2"]},
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "fleetdeploy=fleetdeploy.main:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
