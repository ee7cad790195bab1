"""
Setup script for the overseer agent harness.
"""

from setuptools import setup, find_packages

setup(
    name="agent-overseer",
    version="0.1.0",
    description="Terminal harness for supervising an autonomous coding agent",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="Overseer Team",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "rich>=13.7.0",
        "prompt_toolkit>=3.0.36",
        "pydantic>=2.0.0",
        "psutil>=5.9.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "hypothesis>=6.90.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "overseer=overseer.main:cli",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Environment :: Console",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
