#!/usr/bin/env python3
"""
Setup script for Hands-free Navigation
"""

from pathlib import Path

from setuptools import setup, find_packages


def read_requirements():
    """Read runtime requirements from requirements.txt"""
    path = Path(__file__).parent / "requirements.txt"
    lines = path.read_text().splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


setup(
    name="handsfree-nav",
    version="0.1.0",
    description="Voice and gesture driven focus navigation for web pages and documents",
    packages=find_packages(include=["handsfree_nav", "handsfree_nav.*"]),
    package_data={"handsfree_nav": ["config.default.yaml"]},
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "handsfree-nav=handsfree_nav.main:run",
        ],
    },
)
