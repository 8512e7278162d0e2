# setup.py
from setuptools import setup, find_packages
import os
import sys

# Version fallback in case the file can't be read
version = {'__version__': '1.0.0'}

version_file_path = "peg_adsorption/core/__init__.py"
try:
    if os.path.exists(version_file_path):
        with open(version_file_path) as fp:
            exec(fp.read(), version)
    else:
        print(f"Warning: {version_file_path} not found. Using default version.", file=sys.stderr)
except OSError as e:
    print(f"Warning: Could not read version from {version_file_path}: {e}", file=sys.stderr)

try:
    with open('README.md', encoding='utf-8') as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = "Adsorption analysis of PEG chains on gold surfaces from GROMACS output."

base_requires = [
    "numpy",
    "pandas",
    "matplotlib",
    "seaborn",
    "tqdm",
]

setup(
    name="peg_adsorption",
    version=version['__version__'],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=base_requires,
    extras_require={
        'dev': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'peg_adsorption=peg_adsorption.main:main',
        ],
    },
    description="Adsorption analysis of PEG chains on gold surfaces from GROMACS output.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Operating System :: OS Independent",
        "Topic :: Scientific/Engineering :: Chemistry",
        "Topic :: Scientific/Engineering :: Physics",
    ],
    python_requires='>=3.9',
)
