"""
Setup script for resume-pdf-service.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="resume-pdf-service",
    version="0.1.0",
    packages=find_packages(include=["resume_pdf_service", "resume_pdf_service.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "playwright>=1.40",
        "tenacity>=8.2",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.25",
        ],
    },
)
