# setup.py

from setuptools import setup, find_packages
from pathlib import Path

readme = Path(__file__).parent / "README.md"
long_description = readme.read_text() if readme.exists() else ""

setup(
    name="riskalarm-scoring",
    version="1.0.0",
    description="Real-time transaction risk scoring with feature store, score cache and alerting",
    long_description=long_description,
    long_description_content_type="text/markdown",

    packages=find_packages(include=["feature_store", "feature_store.*", "risk_scoring", "risk_scoring.*"]),
    py_modules=["main"],

    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy[asyncio]>=2.0.0",
        "asyncpg>=0.29.0",
        "redis>=5.0.1",
        "pandas>=2.0.0",
        "numpy>=1.24.0",
        "scikit-learn>=1.3.0",
        "mlflow>=2.9.0",
        "kafka-python>=2.0.3",
    ],

    extras_require={
        "test": ["pytest", "pytest-asyncio>=0.23", "aiosqlite", "httpx"],
        "dev": ["pytest", "pytest-asyncio>=0.23", "aiosqlite", "httpx", "black", "mypy"]
    },

    entry_points={
        "console_scripts": [
            "risk-train=risk_scoring.ml.training:cli",
        ]
    },

    python_requires=">=3.9",

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ]
)
