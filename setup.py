import os
from setuptools import setup

NAME = 'cumulus'


def getPackages(base):
    """
    Recursively find python packages.
    """
    packages = []

    for directory, _, files in os.walk(base):
        if '__init__.py' in files:
            packages.append(directory.replace(os.sep, '.'))

    return packages

packages = getPackages(NAME)


setup(
    name=NAME,
    version='0.0.0',
    description='Portable clients for Nova, CloudServers and CloudStack.',
    packages=packages,
    license="Apache 2.0",
    python_requires='>=3.6',
    package_data={'cumulus.test': ['fixtures/*.json']},
    install_requires=[
        'attrs',
        'constantly',
        'effect',
        'iso8601',
        'jsonschema',
        'pyrsistent',
        'toolz',
        'treq',
        'Twisted',
        'txeffect',
        'zope.interface',
    ],
    extras_require={
        'test': ['mock', 'testtools'],
    },
    entry_points={
        'console_scripts': ['cumulus = cumulus.cli:run'],
    },
)
