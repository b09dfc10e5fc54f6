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
"""A driver for pymemcache.

Talks to exactly one server through a
:class:`pymemcache.client.base.PooledClient`, so concurrent greenlets
each borrow their own connection. Values are pickled unless a
different ``serde`` is passed in the driver options.

Select it with ``driver='memcachedstore.drivers.pymemcache_wrapper'``.
"""
from pymemcache import serde
from pymemcache.client.base import PooledClient
from pymemcache.exceptions import MemcacheIllegalInputError
from zope import interface

from memcachedstore.interfaces import ConfigurationError
from memcachedstore.interfaces import IMemcacheDriver
from memcachedstore.drivers._base import logged
from memcachedstore.drivers._base import parse_cachedump
from memcachedstore.drivers._base import parse_items_stats
from memcachedstore.drivers._base import parse_meta_ttl
from memcachedstore.drivers._base import slab_descriptors

#: The longest key memcached accepts, in bytes.
MAX_KEY_LENGTH = 250


def _check_key(key):
    """
    Return *key* as text after making sure it is safe to interpolate
    into a raw command line.
    """
    encoded = key if isinstance(key, bytes) else str(key).encode('utf-8')
    if len(encoded) > MAX_KEY_LENGTH:
        raise MemcacheIllegalInputError("Key is too long: %r" % (key,))
    if not encoded or any(c <= 32 or c == 127 for c in encoded):
        raise MemcacheIllegalInputError(
            "Key is empty or contains whitespace or control characters: %r" % (key,))
    return encoded.decode('utf-8')


@interface.implementer(IMemcacheDriver)
class Client(object):

    def __init__(self, servers, **kwargs):
        if isinstance(servers, str):
            servers = servers.split()
        if len(servers) != 1:
            raise ConfigurationError("pymemcache driver needs exactly one server", servers)
        self.servers = servers
        kwargs.setdefault('serde', serde.pickle_serde)
        self._client = PooledClient(servers[0], **kwargs)

    def __repr__(self):
        return '<%s server=%r>' % (type(self).__name__, self.servers[0])

    @logged
    def get(self, key):
        return self._client.get(key)

    @logged
    def get_multi(self, keys):
        return self._client.get_many(keys)

    @logged
    def set(self, key, value, ttl=0):
        return self._client.set(key, value, expire=ttl, noreply=False)

    @logged
    def set_multi(self, mapping, ttl=0):
        return self._client.set_many(mapping, expire=ttl, noreply=False)

    @logged
    def delete(self, key):
        return self._client.delete(key, noreply=False)

    @logged
    def delete_multi(self, keys):
        return self._client.delete_many(keys, noreply=False)

    @logged
    def flush_all(self):
        return self._client.flush_all(noreply=False)

    @logged
    def ttl(self, key):
        key = _check_key(key)
        return parse_meta_ttl(self._client.raw_command('mg %s t' % (key,), '\r\n'))

    @logged
    def slab_stats(self):
        return slab_descriptors(parse_items_stats(self._client.stats('items')))

    @logged
    def cachedump(self, slab_id, item_count):
        return parse_cachedump(self._client.stats('cachedump', str(slab_id), str(item_count)))

    @logged
    def disconnect_all(self):
        return self._client.close()
