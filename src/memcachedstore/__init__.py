##############################################################################
#
# Copyright (c) 2019 Zope Foundation and Contributors.
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
"""memcachedstore package"""

from memcachedstore.options import Options
from memcachedstore.store import MemcachedStore

__all__ = [
    'MemcachedStore',
    'Options',
    'create',
]


def create(options=None, **kwoptions):
    """
    Create a :class:`MemcachedStore`; this is what a caching façade
    calls with its store options.
    """
    return MemcachedStore(options, **kwoptions)
