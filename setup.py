from setuptools import setup, find_packages
from pathlib import Path

# Read README.md if available (for development installs)
# For wheel builds, use a fallback description
readme_path = Path(__file__).parent / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
else:
    long_description = "Agent-native Neo4j CLI: graph CRUD, raw Cypher and schema introspection as JSON envelopes with next-action suggestions."

setup(
    name="lowmain",
    version="0.3.0",
    description="Agent-native Neo4j CLI with JSON envelopes and next-action suggestions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "neo4j>=5.0",  # Bolt driver (async API)
        "pydantic>=2.0.0",  # Envelope and config models
        "typer>=0.9.0,<0.26",  # CLI subcommand support (0.26+ no longer builds on click)
        "click",  # imported directly by cli.py
    ],
    entry_points={
        "console_scripts": [
            "lowmain=lowmain.cli:main",
        ],
    },
    extras_require={
        "dev": [
            "pytest",
            "coverage",
            "hypothesis",
        ],
    },
)
