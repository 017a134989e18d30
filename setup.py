from setuptools import find_packages, setup

setup(
    name="signalk-units",
    version="1.0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        "signalk_units.delta": ["schemas/*.json"],
    },
    python_requires=">=3.10",
    install_requires=[
        "jsonschema>=4.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "python-dotenv>=1.0",
        "websockets>=12.0",
        "psutil>=5.9",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "signalk-units=signalk_units.cli:main",
        ],
    },
)
