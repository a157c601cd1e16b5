# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="shotgun-prompt",
    version="0.1.0",
    description="Build a single LLM prompt from a template and a selection of project files",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["shotgun_prompt*"]),
    python_requires=">=3.11",
    install_requires=[
        "tiktoken",  # Token counting for the generated prompt
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'shotgun-prompt=shotgun_prompt.interface.cli.app:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
