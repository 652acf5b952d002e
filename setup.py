"""Install the joyride route library and the backend service."""
from setuptools import setup

setup(
    name="joyride",
    version="0.1.0",
    description="Scenic round-trip driving routes: curvy roads, elevation filter, least-overlap legs",
    packages=["joyride", "backend"],
    package_data={"joyride": ["data/*.kml"]},
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "polyline",
        "geopy",
        "numpy",
        "fastapi",
        "pydantic",
        "uvicorn",
        "python-dotenv",
        "sqlalchemy>=2.0",
        "werkzeug",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "joyride=joyride.__main__:main",
            "joyride-server=backend.Server:main",
        ],
    },
)
