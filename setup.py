"""Setup script for the analyzer-bridge package following Cosmic Python pattern."""

from setuptools import setup, find_namespace_packages

setup(
    name="analyzer-bridge",
    version="1.0.0",
    description="Polling bridge delivering Bio-Rad D-10 HbA1c results to a LIMS",
    author="Analyzer Bridge Team",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["analyzer_bridge*"]),
    python_requires=">=3.11",
    install_requires=[
        "requests",
        "beautifulsoup4",
        "lxml",
        "sqlalchemy>=2.0",
        "pydantic>=2",
        "fastapi",
        "uvicorn[standard]",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-cov",
            "httpx",
        ],
        "dev": [
            "black",
            "flake8",
            "mypy",
            "pre-commit",
        ],
    },
    entry_points={
        "console_scripts": [
            "analyzer-bridge=analyzer_bridge.entrypoints.scheduler:main",
            "analyzer-bridge-api=analyzer_bridge.entrypoints.bridge_api:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Healthcare Industry",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
)
