from setuptools import setup, find_packages

setup(
    name="dzmaker",
    version="0.1.0",
    description="Deep Zoom image pyramids and Z-order packed Deep Zoom collections",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "Pillow>=9.1.0",
        "click>=8.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "makedeepzoom=dzmaker.cli:main",
        ],
    },
    python_requires=">=3.8",
)
