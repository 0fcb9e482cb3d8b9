"""Setup configuration for Caretaker Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="caretaker",
    version="0.1.0",
    description="A Discord bot that detects spam patterns and runs configurable moderation actions",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "aiosqlite>=0.20",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
        "nilsimsa>=0.3.8",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "caretaker=caretaker.main:main",
        ],
    },
)
