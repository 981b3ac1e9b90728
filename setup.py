#!/usr/bin/env python3
"""
Setup script for vimimswitch
"""

from setuptools import setup, find_packages
import os
import sys

# Import the version from the package itself (it has no dependencies)
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
from vimimswitch import __version__

# Read README for long_description
def read_file(filename):
    with open(os.path.join(os.path.dirname(__file__), filename), encoding='utf-8') as f:
        return f.read()

setup(
    name='vimimswitch',
    version=__version__,
    description='Switch the system input method when a Vim-style editor leaves or enters insert mode',
    long_description=read_file('README.md'),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*', 'docs']),
    python_requires='>=3.9',
    install_requires=[],
    extras_require={
        'dev': [
            'pytest>=7.0',
            'pytest-cov',
            'pytest-timeout',
        ],
    },
    entry_points={
        'console_scripts': [
            'vimimswitch=vimimswitch.cli:main',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: End Users/Desktop',
        'Topic :: Utilities',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Environment :: Console',
        'Topic :: Text Editors',
    ],
)
