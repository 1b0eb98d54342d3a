"""
Setup script for quizcore.

quizcore is the assessment engine behind a learning-management backend:

1. Scoring - Pure per-type scorers for fourteen question types
2. Lifecycle - Start, submit and review quiz attempts with typed errors
3. Analytics - Quiz statistics and item analysis

The 'quizcore' command grades submissions and reports statistics offline.
"""

from setuptools import find_packages, setup

setup(
    name="quizcore",
    version="0.1.0",
    description="Quiz attempt lifecycle and multi-type scoring engine",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Right Learning",
    packages=find_packages(include=["quizcore", "quizcore.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
        # Scoring & analytics
        "rapidfuzz>=3.0.0",
        "numpy>=1.24.0",
        "sympy>=1.12",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "quizcore=quizcore.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="assessment quiz scoring education psychometrics",
)
