from setuptools import setup, find_packages

# Import version from the package
from fibserve.version import __version__

setup(
    name="fibserve",
    version=__version__,
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "typer>=0.9.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "tests": [
            "pytest>=7.0",
            "httpx>=0.24.0",
            "requests>=2.28.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fibserve=fibserve.main:app",
        ],
    },
    python_requires=">=3.9",
)
