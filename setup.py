from pathlib import Path
from setuptools import setup, find_packages

ROOT = Path(__file__).parent
README_PATH = ROOT / "README.md"
README = README_PATH.read_text(encoding="utf-8") if README_PATH.exists() else ""

setup(
    name="fireschema_runtime",
    version="0.1.0",
    description="Immutable query/update builders and schema-aware collection resolvers for async Google Cloud Firestore",
    long_description=README,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=("tests", "tests.*", "examples")),
    include_package_data=True,           # include py.typed
    package_data={"fireschema_runtime": ["py.typed"]},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=1.10,<3.0.0",
        "google-cloud-firestore>=2.11.0",  # FieldFilter, count() aggregation
        "packaging",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio", "httpx"],
        "dev": ["black", "ruff", "pytest", "pytest-asyncio", "httpx"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Framework :: AsyncIO",
        "Topic :: Database :: Front-Ends",
        "Typing :: Typed",
    ],
    keywords=[
        "firestore",
        "pydantic",
        "query builder",
        "asyncio",
        "google cloud",
    ],
)
