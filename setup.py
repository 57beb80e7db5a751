"""Setup file for development installation."""

from setuptools import setup, find_packages

setup(
    name="oai-chat-client",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "httpx",
        "pydantic>=2",
        "structlog",
        "prometheus_client",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "oai=oai_chat.cli:main",
        ],
    },
)
