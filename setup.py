from setuptools import find_packages, setup

setup(
    name="fswatch",
    version="0.1.0",
    description="Recursive directory watcher that prints create, remove and write events",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=8.2",
        "toml",
        "rich",
        "inotify_simple>=1.3",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "fswatch=fswatch.cli:main"
        ]
    },
)
