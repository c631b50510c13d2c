#!/usr/bin/python3
from setuptools import setup, find_packages

setup(
    name="blocker",
    version="0.1.0",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        'test': ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'blocker=blocker.cli:main',
        ],
    },
    python_requires=">=3.8",
    description="Temporarily block hostnames through the hosts file",
)
