from setuptools import find_packages, setup  # type: ignore[import-unresolved]

setup(
    name="docpager",
    version="0.1.0",
    packages=find_packages(include=["docpager", "docpager.*"], exclude=["*.tests"]),
    python_requires=">=3.9",
    install_requires=[
        "structlog>=23.1.0",
        "fastapi>=0.100.0",
        "pydantic>=2.0.0",
        "itsdangerous>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.24.0",
        ],
    },
    description="Cursor pagination and filter compilation for document-store aggregation pipelines",
)
