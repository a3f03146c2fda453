#!/usr/bin/env python3
"""
nixparse
A lexer and parser for Nix-style expressions, for formatters, linters and editor tooling.
"""

from setuptools import setup, find_packages
import os
import re
import sys

# Ensure Python 3.8+
if sys.version_info < (3, 8):
    raise RuntimeError("nixparse requires Python 3.8 or later")

# Read version from __init__.py
here = os.path.abspath(os.path.dirname(__file__))
version_file = os.path.join(here, "nixparse", "__init__.py")
version = {}
if os.path.exists(version_file):
    with open(version_file, encoding="utf-8") as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    if match:
        version["__version__"] = match.group(1)

# Read README
readme_file = os.path.join(here, "README.md")
with open(readme_file, "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="nixparse",
    version=version.get("__version__", "0.1.0"),
    description="A lexer and parser for Nix-style expressions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="xwest",
    author_email="dev@nixparse.org",
    url="https://github.com/xwest/nixparse",
    project_urls={
        "Bug Reports": "https://github.com/xwest/nixparse/issues",
        "Source": "https://github.com/xwest/nixparse",
    },
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        # Core has no external dependencies for from-scratch implementation
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-benchmark>=4.0.0",
            "hypothesis>=6.80.0",
            "black>=23.3.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "isort>=5.12.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Compilers",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords=[
        "nix", "parser", "lexer", "tokenizer", "ast", "formatter", "linter",
    ],
    zip_safe=False,
    platforms=["Windows", "Linux", "macOS"],
)
