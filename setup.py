"""
HashDoc setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="hashdoc",
    version="1.0.0",
    description="HashDoc — Document persistence on Redis hashes",
    packages=find_packages(include=["hashdoc", "hashdoc.*"]),
    python_requires=">=3.11",
    install_requires=[
        "redis>=5.0.1",
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
)
