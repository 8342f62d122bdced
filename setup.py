from setuptools import setup, find_packages

setup(
    name="deterministic-masking",
    version="0.1.0",
    description="Deterministic, format-preserving masking and generalization of structured records",
    author="PinguPower",
    packages=find_packages(include=["src", "src.*"]),
    install_requires=[
        "cryptography>=41.0.0",
        "python-dotenv>=0.20.0",
        "pyyaml>=6.0",
        "regex>=2021.4.4",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
)
