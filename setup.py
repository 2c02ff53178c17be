"""
modeldb - validated, queryable catalog of LLM providers and models.

This setup.py file is provided for pip install compatibility.
"""

from setuptools import find_packages, setup

setup(
    name="modeldb",
    version="0.3.0",
    description="Merge, validate and query LLM provider/model metadata from multiple sources.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages("src"),
    package_data={"modeldb": ["data/*.json"]},
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "requests>=2.28",
        "tenacity>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "modeldb=modeldb.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
)
