"""
fluentdb - Fluent Query Builder and Row Mapper

A small query builder with JSON column handling and eager-loaded relations.
Statements are compiled to parameterized SQL and run through a pluggable executor.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
def read_long_description():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return ""

# Define optional dependencies
extras_require = {
    # Standard library executor (no extra install needed)
    'sqlite': [],

    # Alternative JSON implementations for JSON columns
    'orjson': [
        'orjson>=3.6.0',
    ],
    'ujson': [
        'ujson>=5.0.0',
    ],

    # Test dependencies
    'test': [
        'pytest>=7.0.0',
    ],

    # Development dependencies
    'dev': [
        'mypy>=0.950',
        'build>=0.7.0',
        'twine>=4.0.0',
    ],
}

# All optional JSON implementations
extras_require['all'] = (
    extras_require['orjson'] +
    extras_require['ujson']
)

# Full development environment
extras_require['full'] = (
    extras_require['all'] +
    extras_require['test'] +
    extras_require['dev']
)

setup(
    name="fluentdb",
    version="0.1.0",
    author="",
    author_email="",
    description="Fluent query builder and lightweight row mapper with JSON columns and eager loading",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=['examples', 'tests', 'tests.*']),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Typing :: Typed",
    ],
    python_requires=">=3.10",

    # Core dependencies (zero external dependencies, pure Python)
    install_requires=[],

    # Optional dependencies
    extras_require=extras_require,

    keywords="query-builder sql orm json eager-loading sqlite mysql",
)
