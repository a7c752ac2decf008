#!/usr/bin/env python3
from os.path import dirname
from setuptools import setup

with open(dirname(__file__) + "/README.rst", "r") as fd:
    readme = fd.read()

setup(
    name="awsquery",
    version="0.1.0",
    packages=['awsquery'],
    install_requires=["httpx>=0.23", "pytz"],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.7",

    # PyPI information
    description="Signed requests for the AWS Query APIs (EC2, SimpleDB)",
    long_description=readme,
    long_description_content_type="text/x-rst",
    license="Apache 2.0",
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    keywords = ['aws', 'ec2', 'simpledb', 'signature', 'aws-sigv2'],
    zip_safe=False,
)
