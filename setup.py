from setuptools import setup, find_packages

setup(
    name="english-auction",
    version="0.1.0",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    package_data={"english_auction.simulation": ["scenarios/*.yaml"]},
    python_requires=">=3.9",
    install_requires=[
        "web3>=6.0.0",
        "eth-account>=0.10.0",
        "eth-utils>=2.0.0",
        "python-dotenv>=1.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "english-auction-sim=english_auction.simulation.scenario_runner:main",
        ],
    },
)
