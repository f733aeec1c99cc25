"""Setup script for the Apple Search Ads API client."""

from setuptools import setup, find_packages

setup(
    name="apple-search-ads-client",
    version="0.1.0",
    description="Apple Search Ads API client with self-signed OAuth credential management",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.27.0",
        "tenacity>=8.2.3",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-dotenv>=1.0.0",
        "cryptography>=41.0.7",
        "pyjwt[crypto]>=2.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
)
