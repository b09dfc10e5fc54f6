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
Parsing shared by the drivers.

The memcache text protocol answers ``stats items`` with lines like
``STAT items:<slab>:<field> <value>``, ``stats cachedump`` with lines
like ``ITEM <key> [<size> b; <expires> s]`` and the meta-get
``mg <key> t`` with ``HD t<seconds>`` or ``EN``. Client libraries
strip the ``STAT``/``ITEM`` markers and hand us the remainder.
"""
import logging
import re
from functools import wraps

from memcachedstore.interfaces import ProtocolError
from memcachedstore.keys import CacheDumpEntry
from memcachedstore.keys import SlabDescriptor

log = logging.getLogger(__name__)

_ITEM_INFO = re.compile(r'^\[\s*(\d+)\s*b;\s*(\d+)\s*s\s*\]$')


def logged(func):
    """
    Log failures of the driver method *func* and let them propagate.
    """
    name = func.__name__

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            log.debug("%s failed: %s", name, e)
            raise
    return wrapper


def _text(value):
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


def parse_items_stats(stats):
    """
    Group the flat result of ``stats items`` by slab.

    Returns ``{slab_id: {field: value}}``; slab ids are left as
    strings, exactly as the server sent them.

        >>> parse_items_stats({'items:1:number': '2', 'items:1:age': '30',
        ...                    'items:7:number': '1'})
        {'1': {'number': '2', 'age': '30'}, '7': {'number': '1'}}
    """
    slabs = {}
    for name, value in stats.items():
        parts = _text(name).split(':', 2)
        if len(parts) != 3 or parts[0] != 'items':
            raise ProtocolError("Unexpected items statistic", name)
        _, slab_id, field = parts
        slabs.setdefault(slab_id, {})[field] = _text(value).strip()
    return slabs


def slab_descriptors(slabs):
    """
    Convert the output of :func:`parse_items_stats` to a list of
    :class:`SlabDescriptor`, ordered by slab id.
    """
    result = []
    for slab_id, fields in slabs.items():
        try:
            result.append(SlabDescriptor(int(slab_id), int(fields['number'])))
        except (KeyError, TypeError, ValueError):
            raise ProtocolError("Malformed statistics for slab", slab_id, fields)
    result.sort()
    return result


def parse_cachedump(dump):
    """
    Convert the mapping a client makes from ``stats cachedump``
    (key to item information) into a list of :class:`CacheDumpEntry`.

        >>> parse_cachedump({b'foo': b'[3 b; 0 s]'})
        [CacheDumpEntry(key='foo', size=3, expires=0)]
    """
    entries = []
    for key, info in dump.items():
        size = expires = None
        match = _ITEM_INFO.match(_text(info).strip())
        if match is not None:
            size, expires = int(match.group(1)), int(match.group(2))
        entries.append(CacheDumpEntry(_text(key) if key else None, size, expires))
    return entries


def parse_meta_ttl(line):
    """
    Interpret the response to ``mg <key> t``.

        >>> parse_meta_ttl(b'HD t42')
        42
        >>> parse_meta_ttl('HD t-1')
        -1
        >>> parse_meta_ttl(b'EN') is None
        True
    """
    parts = _text(line).split()
    if parts == ['EN']:
        return None
    if not parts or parts[0] not in ('HD', 'OK', 'VA'):
        raise ProtocolError("Unexpected response to meta get", line)
    for flag in parts[1:]:
        if flag.startswith('t'):
            try:
                return int(flag[1:])
            except ValueError:
                break
    raise ProtocolError("No ttl in response to meta get", line)
