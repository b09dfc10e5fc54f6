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
"""A driver for python-memcached (the ``memcache`` module).

This is the default driver. python-memcached talks to each server over
its own socket, so statistics come back per server; ``slab_stats``
reports them that way, tagging each server's mapping with a ``server``
key.

Use with ``gevent.monkey.patch_all()`` to overlap the requests made
while listing keys.
"""
import logging

import memcache
from zope import interface

from memcachedstore._util import to_utf8
from memcachedstore.interfaces import IMemcacheDriver
from memcachedstore.drivers._base import logged
from memcachedstore.drivers._base import parse_cachedump
from memcachedstore.drivers._base import parse_items_stats
from memcachedstore.drivers._base import parse_meta_ttl

log = logging.getLogger(__name__)


@interface.implementer(IMemcacheDriver)
class Client(object):

    def __init__(self, servers, **kwargs):
        self.servers = servers
        self._client = memcache.Client(servers, **kwargs)

    def __repr__(self):
        return '<%s servers=%r>' % (type(self).__name__, self.servers)

    @logged
    def get(self, key):
        return self._client.get(key)

    @logged
    def get_multi(self, keys):
        return self._client.get_multi(keys)

    @logged
    def set(self, key, value, ttl=0):
        return self._client.set(key, value, time=ttl)

    @logged
    def set_multi(self, mapping, ttl=0):
        return self._client.set_multi(mapping, time=ttl)

    @logged
    def delete(self, key):
        return self._client.delete(key)

    @logged
    def delete_multi(self, keys):
        return self._client.delete_multi(keys)

    @logged
    def flush_all(self):
        return self._client.flush_all()

    @logged
    def ttl(self, key):
        encoded_key = to_utf8(key)
        # The meta command is sent raw; keep it to one well-formed line.
        self._client.check_key(encoded_key)
        server, encoded_key = self._client._get_server(encoded_key)
        if server is None:
            # python-memcached treats unreachable servers as misses.
            return None
        server.send_cmd(b'mg ' + encoded_key + b' t')
        line = server.readline()
        if not line:
            raise ConnectionError("Connection to %s closed while reading ttl" % (server,))
        return parse_meta_ttl(line)

    @logged
    def slab_stats(self):
        result = []
        for server_name, stats in self._get_stats('items'):
            slabs = parse_items_stats(stats)
            slabs['server'] = server_name
            result.append(slabs)
        return result

    @logged
    def cachedump(self, slab_id, item_count):
        entries = []
        command = 'cachedump %d %d' % (slab_id, item_count)
        for server_name, dump in self._get_stats(command):
            log.debug("Server %s dumped %d item(s) of slab %s",
                      server_name, len(dump), slab_id)
            entries.extend(parse_cachedump(dump))
        return entries

    @logged
    def disconnect_all(self):
        return self._client.disconnect_all()

    def _get_stats(self, command):
        # python-memcached leaves out the servers it can't reach.
        answers = self._client.get_stats(command)
        expected = len(self._client.servers)
        if len(answers) < expected:
            raise ConnectionError(
                "Only %d of %d memcache server(s) answered 'stats %s' "
                "(answered: %s; configured: %s)" % (
                    len(answers), expected, command,
                    [name for name, _ in answers], self.servers
                ))
        return answers
