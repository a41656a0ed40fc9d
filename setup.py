#!/usr/bin/env python

from setuptools import setup

setup(
    name="ninjaxcode",
    version="0.1.0",
    packages=[
        "ninjaxcode",
        "ninjaxcode.details",
        "ninjaxcode.generators",
        "ninjaxcode.generators.xcode",
    ],
    python_requires=">=3.9",
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["ninjaxcode = ninjaxcode.__main__:main"]},
)
