# Local non-editable install:
#   `pip install .`
#
# Local editable install:
#   `pip install -e .`
#
# With test dependencies:
#   `pip install -e .[dev]`

import setuptools

# ----------------------------------------------------------------
# Don't use `if __name__ == "__main__":` as the `python_requires` must
# be at top level, outside any if-block
# https://github.com/pypa/cibuildwheel/blob/7c4bbf8cb31d856a0fe547faf8edf165cd48ce74/cibuildwheel/projectfiles.py#L41-L46

setuptools.setup(
    name="adview",
    description="Terminal viewer for the obs/var annotations of AnnData h5ad files",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Operating System :: Unix",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: Microsoft :: Windows",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    package_dir={"": "src"},
    packages=setuptools.find_packages("src"),
    zip_safe=False,
    install_requires=[
        "attrs>=22.2",
        "h5py>=3.0",
        "numpy",
        "typing-extensions",  # Note "-" even though `import typing_extensions`
    ],
    extras_require={
        "dev": [
            "anndata",
            "pandas",
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "adview = adview._cli:main",
        ],
    },
    python_requires=">=3.9",
    version="0.1.0",
)
