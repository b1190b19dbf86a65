#!/usr/bin/env python3
"""
Setup script for keychain-cli
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="keychain-cli",
    version="1.0.0",
    author="Tyler Zervas",
    author_email="tz-dev@vectorweight.com",
    description="Interactive command-line manager for passwords in the system secret store",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/tzervas/keychain-cli",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security",
        "Topic :: Utilities",
    ],
    python_requires=">=3.10",
    install_requires=[
        "click>=8.1",
        "keyring>=24.0",
        "pydantic>=2.0",
        "rich>=13.0",
        "structlog>=23.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "keychain-cli=keychain_cli.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
