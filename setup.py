#!/usr/bin/env python
from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='ldapsearch',
    version='1.0.0',
    description='A connector that runs a validated search against an LDAP directory',
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=['ldap', 'directory', 'search'],
    packages=find_packages(exclude=['bin']),
    include_package_data=True,
    python_requires='>=3.10',
    install_requires=[
        'python-ldap',
    ],
    extras_require={
        'test': [
            'python-ldap-faker',
            'pytest',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3"
    ],
)
