"""setuptools setup for ModelTimer.

Install for development:
    pip install -e ".[test]"
"""

from setuptools import find_packages, setup

setup(
    name="ModelTimer",
    version="0.1.0",
    description="Pose/break session timer with alarm, alerts and auto-restart",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=["PyQt6"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": ["modeltimer = modeltimer.__main__:main"],
    },
)
