"""
Setup script for the Cosmic Horoscope API package.

This package provides the horoscope generation API: time-bucketed caching of
generated text, retry with exponential backoff around the generation
provider, and the Lambda handlers that serve it over HTTP.
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="cosmic-horoscope",
    version="1.0.0",
    author="Cosmic Horoscope Team",
    description="Inventor's horoscope generation API with time-bucketed caching",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        # AWS SDK (CloudWatch metrics)
        "boto3>=1.28.85",
        "botocore>=1.31.85",

        # HTTP client
        "requests>=2.31.0",
    ],
    extras_require={
        "dev": [
            # Testing
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.21.0",

            # Code quality
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.1",

            # Type stubs
            "boto3-stubs[cloudwatch]>=1.28.85",
            "types-requests>=2.31.0",
        ],
    },
    zip_safe=False,
)
