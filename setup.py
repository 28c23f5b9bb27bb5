from setuptools import setup, find_packages

setup(
    name="capadapt",
    version="0.1.0",
    description="Uniform capability adapters over native and foreign-runtime backends",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic",
        "python-dotenv",
        "click",
        "RestrictedPython",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "capadapt=capadapt.cli.cli:cli",
        ],
    },
)
