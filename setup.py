from pathlib import Path
from setuptools import setup, find_packages

README = (Path(__file__).parent / "README.md").read_text(encoding="utf-8")

setup(
    name="broadside-client",
    version="0.1.0",
    description="Client for two-player networked Battleship, driven by server snapshots",
    long_description=README,
    long_description_content_type="text/markdown",
    packages=find_packages(include=("broadside", "broadside.*")),
    python_requires=">=3.9",
    install_requires=[
        "pygame>=2.5.0",
        "websocket-client>=1.6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "broadside=broadside.cli:main",
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Games/Entertainment",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
