# -*- coding: utf-8 -*-
"""
Script to run zope.testrunner in a gevent monkey-patched environment.

With the socket module patched, the python-memcached driver's requests
made while listing keys overlap instead of running one after another.
"""
import gevent.monkey
gevent.monkey.patch_all()
# pylint:disable=wrong-import-position, wrong-import-order
import sys

from zope.testrunner import run

sys.argv[:] = [
    'zope-testrunner',
    '--path', 'src',
    '-v',
    '--color',
    '--keepbytecode',
] + sys.argv[1:]
print(sys.argv)
run()
