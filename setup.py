##############################################################################
#
# Copyright (c) 2008 Zope Foundation and Contributors.
# All Rights Reserved.
#
# This software is subject to the provisions of the Zope Public License,
# Version 2.1 (ZPL).  A copy of the ZPL should accompany this distribution.
# THIS SOFTWARE IS PROVIDED "AS IS" AND ANY AND ALL EXPRESS OR IMPLIED
# WARRANTIES ARE DISCLAIMED, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
# WARRANTIES OF TITLE, MERCHANTABILITY, AGAINST INFRINGEMENT, AND FITNESS
# FOR A PARTICULAR PURPOSE.
#
##############################################################################
import os

from setuptools import setup
from setuptools import find_packages


def read_file(*path):
    base_dir = os.path.dirname(__file__)
    file_path = (base_dir, ) + tuple(path)
    with open(os.path.join(*file_path), 'rt', encoding='utf-8') as f:
        result = f.read()
    return result

VERSION = read_file('version.txt').strip()

pylibmc_require = [
    # Couldn't get this building on 3.12; it's deprecated though.
    'pylibmc; platform_python_implementation=="CPython" and sys_platform != "win32" and python_version < "3.12"',
]

tests_require = [
    'zope.testrunner',
    'nti.testing',
    'PyHamcrest',
]

setup(
    name="memcachedstore",
    version=VERSION,
    author="Zope Foundation and Contributors",
    url="https://github.com/zopefoundation/memcachedstore",
    keywords="memcache memcached cache store gevent",
    packages=find_packages('src'),
    package_dir={'': 'src'},
    include_package_data=True,
    license="ZPL 2.1",
    platforms=["any"],
    description="A memcache store adapter for caching façades, with key listing.",
    python_requires=">=3.9",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Zope Public License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Programming Language :: Python :: Implementation :: CPython",
        "Programming Language :: Python :: Implementation :: PyPy",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Operating System :: Unix",
        "Development Status :: 4 - Beta",
    ],
    long_description=read_file("README.rst"),
    zip_safe=False,
    install_requires=[
        'perfmetrics >= 3.0.0',
        'zope.interface',
        'zope.dottedname',
        'ZConfig',
        'gevent >= 23.7.0',
        # The default driver.
        'python-memcached',
        # pymemcache 3.5 added raw_command.
        'pymemcache >= 3.5.0',
    ],
    tests_require=tests_require,
    extras_require={
        'pylibmc': pylibmc_require,
        'test': tests_require,
    },
)
