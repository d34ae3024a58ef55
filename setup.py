#!/usr/bin/env python3
"""
Setup script for the Piano Venues API
A community directory of piano venues with curator review and on-chain rewards sync.
"""

from setuptools import setup
import os

# Read the README file for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Piano Venues API - A community directory of piano venues with curator review."

# Read requirements from requirements.txt
def read_requirements():
    requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(requirements_path):
        with open(requirements_path, 'r', encoding='utf-8') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

setup(
    name="piano-venues",
    version="1.0.0",
    description="A community directory of piano venues with curator review and on-chain rewards sync",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    py_modules=["app"],
    packages=["config", "scripts"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Framework :: Flask",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-flask>=1.2.0",
        ],
        "deploy": [
            "gunicorn>=20.0",
            "psycopg2-binary>=2.8.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "piano-venues=app:main",
        ],
    },
    include_package_data=True,
    keywords="piano, venues, celo, ipfs, flask, api",
)
