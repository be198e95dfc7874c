from setuptools import setup, find_packages

setup(
    name="kpitokens",
    version="1.0.0",
    packages=find_packages(include=["kpitokens", "kpitokens.*"]),
    install_requires=[
        "pandas>=2.0",
        "python-dateutil>=2.8",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "kpitokens=kpitokens.cli:main",
        ],
    },
    python_requires=">=3.10",
    description="KPI token escrow and settlement engine with template registry and oracle adapter",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ]
)
