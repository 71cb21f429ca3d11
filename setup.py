"""Setup script for the winget_manager package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file for long description
readme_path = Path(__file__).parent / "README.md"
try:
    with open(readme_path, encoding="utf-8") as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = "A Python adapter for the Windows Package Manager (winget) command line"

setup(
    name="winget-manager",
    version="1.0.0",
    description="Run winget and turn its table output into typed package, source and pin records",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Max Qian",
    author_email="astro_air@126.com",
    packages=find_packages(include=["winget_manager", "winget_manager.*"]),
    python_requires=">=3.10",
    install_requires=[
        "loguru>=0.6.0",
        "aiofiles>=0.8.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.20.0",
            "pytest-mock>=3.10.0",
            "mypy>=1.0.0",
            "black>=22.0.0",
            "isort>=5.10.0",
            "flake8>=5.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.20.0",
            "pytest-mock>=3.10.0",
            "pytest-cov>=4.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Installation/Setup",
        "Topic :: System :: Systems Administration",
        "Topic :: Utilities",
        "Typing :: Typed",
    ],
    keywords="winget windows package manager parser async",
    entry_points={
        "console_scripts": [
            "winget-manager=winget_manager.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
