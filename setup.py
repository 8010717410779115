import os

from setuptools import find_packages, setup


# read the version from the VERSION file
def get_version():
    with open(os.path.join(os.path.dirname(__file__), "VERSION"), "r") as version_file:
        return version_file.read().strip()


# Set the version in the stackwrapper/version.py file
def set_version_constant(version: str):
    with open(
        os.path.join(os.path.dirname(__file__), "stackwrapper-core", "stackwrapper", "version.py"),
        "w",
    ) as version_file:
        version_file.write(f'__version__ = "{version}"\n')


set_version_constant(get_version())

setup(
    name="stackwrapper",
    version=get_version(),
    description="Create and tear down AWS CloudFormation stacks from build pipelines",
    python_requires=">=3.9",
    package_dir={"": "stackwrapper-core"},
    packages=find_packages(where="stackwrapper-core"),
    install_requires=[
        "boto3>=1.26",
        "botocore>=1.29",
        "click>=8.1",
        "python-dotenv>=0.19",
        "PyYAML>=6.0",
        "rich>=12.3",
    ],
    extras_require={
        "test": [
            "moto[cloudformation,sns]>=5.0",
            "pytest>=7.4",
        ],
        "typehint": [
            "boto3-stubs[cloudformation]",
        ],
    },
    entry_points={
        "console_scripts": [
            "stackwrapper=stackwrapper.cli.main:main",
        ],
    },
)
