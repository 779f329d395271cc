from setuptools import setup, find_packages

setup(
    name="badrows",
    version="0.1.0",
    description="Repair or discard bad rows using a user-defined Python script.",
    author="Raiff1982",
    packages=find_packages(),
    install_requires=[
        "filelock"
    ],
    extras_require={
        "test": [
            "pytest"
        ]
    },
    python_requires='>=3.8',
    entry_points={
        "console_scripts": [
            "badrows-fix=badrows.fix_rows:main"
        ]
    },
    include_package_data=True,
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
