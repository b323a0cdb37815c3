#!/usr/bin/env python3
"""Setup script for Graph Editor."""

from setuptools import setup, find_packages


setup(
    name="grapheditor",
    version="1.0.0",
    description="Interactive weighted graph editor with shortest-path search",
    author="Graph Editor Project",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    # The GTK bindings need system libraries; the engine and the
    # grapheditor-tool commands other than export run without them.
    install_requires=[],
    extras_require={
        "gui": [
            "PyGObject>=3.46.0",
            "pycairo>=1.25.0",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "grapheditor=grapheditor.launcher:main",
            "grapheditor-tool=grapheditor.cli:main",
        ],
        "gui_scripts": [
            "grapheditor-gui=grapheditor.launcher:main",
        ],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Environment :: X11 Applications :: GTK",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Visualization",
    ],
)
