import sys
from setuptools import setup, find_packages

# Check for minimum Python version if necessary
if sys.version_info < (3, 8):
    sys.exit("Sorry, Python >= 3.8 is required for stensor.")

# Read README for long description
try:
    with open("README.md", encoding="utf-8") as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = "stensor: a strided tensor storage and view engine. (README not found)"


setup(
    name="stensor",
    version="0.1.0", # Keep in sync with the fallback in stensor/__init__.py
    description="Strided N-dimensional tensors with zero-copy views and BLAS interop",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    # Define the Python package structure
    packages=find_packages(exclude=["stensor.tests"]),
    # numpy holds the flat storage buffers, scipy provides the native BLAS routines
    install_requires=["numpy>=1.21", "scipy>=1.7"],
    extras_require={"test": ["pytest>=7"]},
    zip_safe=False,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
)
