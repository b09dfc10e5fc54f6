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
"""
Listing the keys of a memcache server.

Memcache has no command to list keys. Instead, we ask the server which
slabs hold items (``stats items``), ask it to dump the keys of each of
those slabs (``stats cachedump``) and then ``get`` each dumped key,
because a dump can name items that have since expired or been evicted.

This is expensive; it is meant for administration and tests, not for
the request path.
"""
import logging
from collections import namedtuple
from collections.abc import Mapping

import gevent
from gevent.event import Event
from gevent.pool import Group
from gevent.pool import Pool

from memcachedstore._util import log_timed
from memcachedstore._util import metricmethod_sampled
from memcachedstore.interfaces import EnumerationTimeout
from memcachedstore.interfaces import ProtocolError

logger = logging.getLogger(__name__)

#: One memory slab of the server. The item count is a snapshot;
#: the live server changes it concurrently.
SlabDescriptor = namedtuple('SlabDescriptor', ('slab_id', 'item_count'))

#: One item named by a slab dump. *key* is None if the dump
#: couldn't name it; *size* and *expires* are None if unknown.
CacheDumpEntry = namedtuple('CacheDumpEntry', ('key', 'size', 'expires'))


def _is_slab_id(value):
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, bytes):
        value = value.decode('ascii', 'replace')
    return isinstance(value, str) and value.isdigit()


def normalize_slabs(stats):
    """
    Turn what a driver's ``slab_stats()`` returned into a list of
    :class:`SlabDescriptor`, one per distinct slab id.

    *stats* is either a flat sequence of :class:`SlabDescriptor`, or
    has one mapping per server. Those mappings map slab ids to a
    mapping holding at least ``number``; their other, non-numeric,
    keys describe the server and are ignored.

    Drivers that talk to several servers dump a slab id on all of
    them at once, so a slab id seen for several servers is dumped
    only once, with the largest item count reported for it.
    """
    by_id = {}
    for entry in stats or ():
        if isinstance(entry, SlabDescriptor):
            found = [entry]
        elif isinstance(entry, Mapping):
            found = []
            for slab_id, data in entry.items():
                if not _is_slab_id(slab_id):
                    # Server metadata.
                    continue
                try:
                    count = int(data['number'])
                except (KeyError, TypeError, ValueError):
                    raise ProtocolError("Malformed statistics for slab", slab_id, data)
                found.append(SlabDescriptor(int(slab_id), count))
        else:
            raise ProtocolError("Unrecognized slab statistics", entry)

        for slab in found:
            known = by_id.get(slab.slab_id)
            if known is None or known.item_count < slab.item_count:
                by_id[slab.slab_id] = slab

    return [by_id[slab_id] for slab_id in sorted(by_id)]


class KeyEnumerator(object):
    """
    Produces the list of keys currently live in a memcache server.

    All slab dumps and all existence checks are issued concurrently,
    in greenlets that share the single *client* given to
    :meth:`enumerate`. The client (driver) is responsible for making
    that safe.
    """

    #: How many existence checks may be outstanding at once.
    concurrency = 50
    #: Seconds to wait for the whole enumeration. None waits forever.
    timeout = None

    def __init__(self, concurrency=None, timeout=None):
        if concurrency is not None:
            self.concurrency = concurrency
        if timeout is not None:
            self.timeout = timeout

    def __repr__(self):
        return '<%s concurrency=%s timeout=%s>' % (
            type(self).__name__, self.concurrency, self.timeout
        )

    @metricmethod_sampled
    @log_timed
    def enumerate(self, client):
        """
        Return a list of the live keys known to *client*.

        A key is included if some slab dump named it and a ``get``
        of it found a value. Each key is included once; the order is
        the order in which the checks finished.

        The first exception raised by *client* stops the enumeration
        and is raised from here, unchanged. If :attr:`timeout` passes
        first, raises :class:`EnumerationTimeout`.
        """
        slabs = [s for s in normalize_slabs(client.slab_stats()) if s.item_count > 0]
        if not slabs:
            logger.debug("No items in any slab of %s", client)
            return []

        logger.debug(
            "Dumping %d slab(s) holding %d item(s) from %s",
            len(slabs), sum(s.item_count for s in slabs), client
        )

        keys = []
        queued = set()
        errors = []
        finished = Event()
        dumps = Group()
        checks = Pool(self.concurrency)

        def fail(ex):
            if not errors:
                errors.append(ex)
            finished.set()

        def check(key):
            try:
                if client.get(key) is not None:
                    keys.append(key)
            except Exception as ex: # pylint:disable=broad-except
                fail(ex)

        def dump(slab):
            try:
                entries = client.cachedump(slab.slab_id, slab.item_count)
                for entry in entries:
                    key = entry.key
                    if key is None or key in queued:
                        continue
                    queued.add(key)
                    checks.spawn(check, key)
            except Exception as ex: # pylint:disable=broad-except
                fail(ex)

        def wait_for_all():
            # Every check is spawned by a dump, so once all the dumps
            # are done, so is the spawning.
            dumps.join()
            checks.join()
            finished.set()

        for slab in slabs:
            dumps.spawn(dump, slab)
        waiter = gevent.spawn(wait_for_all)
        try:
            if not finished.wait(self.timeout):
                raise EnumerationTimeout(self.timeout)
        finally:
            waiter.kill()
            dumps.kill()
            checks.kill()

        if errors:
            logger.debug("Enumerating keys of %s failed: %r", client, errors[0])
            raise errors[0]

        logger.debug("Found %d live key(s) of %d dumped", len(keys), len(queued))
        return keys
