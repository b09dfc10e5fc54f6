##############################################################################
#
# Copyright (c) 2009 Zope Foundation and Contributors.
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
"""A memcache-like driver sufficient for testing without an actual memcache.

Items are placed in slabs by the size of their ``repr``, 64 bytes
per slab class, and statistics are reported per server, the way
python-memcached reports them.
"""
from zope import interface

from memcachedstore.interfaces import IMemcacheDriver
from memcachedstore.keys import CacheDumpEntry

data = {}
ttls = {}

SLAB_CLASS_SIZE = 64

def clear():
    data.clear()
    ttls.clear()

def _size(value):
    return len(repr(value))

def _slab_id(value):
    return 1 + _size(value) // SLAB_CLASS_SIZE


@interface.implementer(IMemcacheDriver)
class Client(object):

    def __init__(self, servers, **kwargs):
        self.servers = servers
        self.kwargs = kwargs

    def get(self, key):
        return data.get(key)

    def get_multi(self, keys):
        return dict((key, data[key]) for key in keys if key in data)

    def set(self, key, value, ttl=0):
        data[key] = value
        ttls[key] = ttl
        return True

    def set_multi(self, mapping, ttl=0):
        for key, value in mapping.items():
            self.set(key, value, ttl)
        return []

    def delete(self, key):
        data.pop(key, None)
        ttls.pop(key, None)

    def delete_multi(self, keys):
        for key in keys:
            self.delete(key)

    def flush_all(self):
        clear()

    def ttl(self, key):
        if key not in data:
            return None
        return ttls.get(key) or -1

    def slab_stats(self):
        slabs = {}
        for value in data.values():
            slab = slabs.setdefault(str(_slab_id(value)), {'number': 0})
            slab['number'] += 1
        slabs['server'] = ' '.join(self.servers)
        return [slabs]

    def cachedump(self, slab_id, item_count):
        return [
            CacheDumpEntry(key, _size(value), ttls.get(key, 0))
            for key, value in data.items()
            if _slab_id(value) == slab_id
        ][:item_count]

    def disconnect_all(self):
        # no-op
        pass
