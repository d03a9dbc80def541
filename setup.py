#!/usr/bin/env python3
# =============================================================================
#  resolve-oracle — setup.py
#
#  For development:
#      pip install -e ".[dev]"
#      python -m pytest
# =============================================================================

from __future__ import annotations

import re
from pathlib import Path

from setuptools import setup, find_packages

# ---------------------------------------------------------------------------
#  Read version from the package so we have a single source of truth.
# ---------------------------------------------------------------------------
_HERE = Path(__file__).resolve().parent


def _read_version() -> str:
    """Extract ``__version__`` from resolve_oracle/__init__.py."""
    init = _HERE / "resolve_oracle" / "__init__.py"
    text = init.read_text(encoding="utf-8")
    match = re.search(r'^__version__\s*=\s*"([^"]+)"', text, re.MULTILINE)
    if match:
        return match.group(1)
    return "0.0.0"


def _read_long_description() -> str:
    """Read README.md for the long description."""
    readme = _HERE / "README.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="resolve-oracle",
    version=_read_version(),
    description=(
        "Marker-annotated source oracle: checks a name/type resolver "
        "against expectations embedded in fixture files."
    ),
    long_description=_read_long_description(),
    long_description_content_type="text/markdown",
    license="MIT",
    author="resolve-oracle contributors",
    python_requires=">=3.10",
    packages=find_packages(
        include=[
            "resolve_oracle",
            "resolve_oracle.*",
            "fixturelang",
            "fixturelang.*",
        ],
        exclude=[
            "tests",
            "tests.*",
        ],
    ),
    package_data={
        "resolve_oracle": ["py.typed"],
        "fixturelang": ["py.typed"],
    },
    install_requires=[
        "parsimonious>=0.10",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "ruff>=0.4",
            "mypy>=1.10",
            "black>=24.0",
            "isort>=5.13",
        ],
    },

    # ── CLI ────────────────────────────────────────────────────────────
    entry_points={
        "console_scripts": [
            "resolve-oracle=resolve_oracle.main:main",
        ],
    },

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Testing",
        "Topic :: Software Development :: Compilers",
    ],
    keywords=[
        "name-resolution",
        "type-inference",
        "test-fixtures",
        "oracle",
        "parsimonious",
    ],
    zip_safe=False,
)
