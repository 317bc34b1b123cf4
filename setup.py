#!/usr/bin/env python3
"""Setup script for chunkmap package.
"""

from setuptools import find_packages, setup

setup(
    name="chunkmap",
    version="0.1.0",
    description="Chunked parallel map-reduce evaluator with configurable work chunking",
    author="Chunkmap Team",
    packages=find_packages(include=["chunkmap*"]),
    python_requires=">=3.10",
    install_requires=[
        "joblib>=1.4.0",
        "pandas>=1.5.0",
        "psutil>=5.9.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
            "mypy>=1.5.0",
            "pandas-stubs>=2.0.0",
            "types-PyYAML>=6.0.0",
            "types-psutil>=5.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "chunkmap=chunkmap.cli:main",
        ],
    },
)
