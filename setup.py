from setuptools import setup, find_packages

setup(
    name="vodpack",
    version="0.1.0",
    packages=find_packages(include=["vodpack", "vodpack.*"]),
    install_requires=[
        "ffmpeg-python",
        "rich>=13.0.0",  # Explicit minimum version
        "psutil",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "vodpack=vodpack.__main__:main",
        ],
    },
    python_requires=">=3.8",
)
