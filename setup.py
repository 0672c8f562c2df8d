#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Setup configuration for the credit ledger service.
"""

from setuptools import setup, find_namespace_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="credit-ledger-service",
    version="1.0.0",
    author="isA Platform",
    author_email="dev@isa-platform.com",
    description="Revolving credit ledger with monthly debt cycles",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["core", "core.*", "microservices", "microservices.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0.0",
        "httpx>=0.24.0",
        "tenacity>=8.0.0",
        "asyncpg>=0.29.0",  # PostgreSQL async client
        "python-dotenv>=1.0.0",
        "python-dateutil>=2.8.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
)
