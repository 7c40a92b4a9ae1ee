"""Setup script for pose-overlay package."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="pose-overlay",
    version="0.1.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Pose keypoint, skeleton and joint-angle overlay on video using pretrained pose models",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/pose-overlay",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["cli"],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Image Recognition",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "movenet": [
            "tensorflow>=2.12",
            "tensorflow-hub>=0.14",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pose-overlay=cli:cli",
        ],
    },
    include_package_data=True,
    package_data={
        "": ["config/*.yaml"],
    },
)
