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
"""A driver for pylibmc.

Select it with ``driver='memcachedstore.drivers.pylibmc_wrapper'``;
requires the ``pylibmc`` extra.

libmemcached only understands ``STAT`` lines in response to the
``stats`` command, so this driver can report slab statistics but can't
dump slabs or query ttls; ``keys()`` and ``ttl()`` fail with
:class:`~memcachedstore.interfaces.UnsupportedCommand`.
"""
import pylibmc  # pylint:disable=import-error
from zope import interface

from memcachedstore.interfaces import IMemcacheDriver
from memcachedstore.interfaces import UnsupportedCommand
from memcachedstore.drivers._base import logged
from memcachedstore.drivers._base import parse_items_stats


@interface.implementer(IMemcacheDriver)
class Client(object):
    behaviors = {
        "tcp_nodelay": True,
        "ketama": True,
    }

    min_compress_len = 0

    def __init__(self, servers, **kwargs):
        self.servers = servers
        # The text protocol; binary stats don't include items.
        kwargs.setdefault('binary', False)
        self._client = pylibmc.Client(servers, **kwargs)
        self._client.set_behaviors(self.behaviors)
        if pylibmc.support_compression: # pylint:disable=no-member
            self.min_compress_len = 1000

    def __repr__(self):
        return '<%s servers=%r>' % (type(self).__name__, self.servers)

    @logged
    def delete(self, key):
        return self._client.delete(key)

    @logged
    def delete_multi(self, keys):
        return self._client.delete_multi(keys)

    @logged
    def get(self, key):
        return self._client.get(key)

    @logged
    def get_multi(self, keys):
        return self._client.get_multi(keys)

    @logged
    def set(self, key, value, ttl=0):
        return self._client.set(
            key, value, time=ttl, min_compress_len=self.min_compress_len)

    @logged
    def set_multi(self, mapping, ttl=0):
        return self._client.set_multi(
            mapping, time=ttl, min_compress_len=self.min_compress_len)

    @logged
    def flush_all(self):
        return self._client.flush_all()

    def ttl(self, key):
        raise UnsupportedCommand(self, 'mg')

    @logged
    def slab_stats(self):
        result = []
        for server_name, stats in self._client.get_stats('items'):
            slabs = parse_items_stats(stats)
            slabs['server'] = server_name
            result.append(slabs)
        return result

    def cachedump(self, slab_id, item_count):
        raise UnsupportedCommand(self, 'stats cachedump')

    @logged
    def disconnect_all(self):
        return self._client.disconnect_all()
