#!/usr/bin/env python3
"""
Setup script for fusioncheck - ARM64 macro-op fusion analyzer
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read version from a version file
version = "1.0.0"
version_file = Path(__file__).parent / "fusioncheck" / "__version__.py"
if version_file.exists():
    exec(version_file.read_text())
    version = __version__  # noqa: F821

setup(
    name="fusioncheck",
    version=version,
    description="ARM64 macro-op fusion analyzer for disassembled binaries",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="fusioncheck contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*", "plugins", "docs", "htmlcov"]),
    py_modules=["main"],
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "flask>=3.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "hypothesis>=6.82.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fusioncheck=main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Disassemblers",
        "Topic :: Software Development :: Compilers",
    ],
    keywords="arm64 aarch64 macro-op fusion disassembly performance apple-silicon neoverse",
    zip_safe=False,
)
