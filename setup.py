from setuptools import setup, find_packages

setup(
    name="smarthome_dashboard",
    version="1.0.0",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    install_requires=[
        # Core Dependencies
        "pyyaml>=6.0.1",
        "loguru>=0.7.0",
        "paho-mqtt>=2.0.0",

        # API Dependencies
        "fastapi>=0.95.0",
        "uvicorn>=0.22.0",
        "websockets>=12.0",
        "httpx>=0.24.0",

        # Additional Dependencies
        "pydantic>=2.0.0",
        "psutil>=5.9.0",
    ],
    extras_require={
        "dev": [
            # Testing
            "pytest>=7.3.1",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.10.0",

            # Development Tools
            "black>=23.3.0",
            "flake8>=6.0.0",
            "mypy>=1.3.0",
            "pylint>=2.17.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "smarthome-dashboard=smarthome_dashboard.__main__:main",
        ],
    },
    python_requires=">=3.9",
)
