from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as f:
    requirements = [line.strip() for line in f.readlines() if line.strip() and not line.startswith("#")]

setup(
    name="polygon-flashloan-executor",
    version="1.0.0",
    author="ArbitrageWise Development Team",
    author_email="dev@arbitragewise.com",
    description="Guarded execution pipeline for flash loan funded cross-DEX arbitrage on Polygon",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/polygon-flashloan-executor",
    packages=find_packages(exclude=["tests*", "docs*"]),
    py_modules=["shared_telegram_manager"],
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Intended Audience :: Developers",
        "Topic :: Office/Business :: Financial :: Investment",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Framework :: AsyncIO",
    ],
    keywords="arbitrage, defi, polygon, flash loan, aave, 1inch, dex, trading",
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "black>=23.3.0",
            "isort>=5.12.0",
            "mypy>=1.3.0",
            "flake8>=6.0.0",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    project_urls={
        "Bug Reports": "https://github.com/yourusername/polygon-flashloan-executor/issues",
        "Source": "https://github.com/yourusername/polygon-flashloan-executor",
    },
)
