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
Interfaces and exceptions.
"""

from zope.interface import Attribute
from zope.interface import Interface

# pylint: disable=inherit-non-class,no-method-argument,no-self-argument


class IMemcacheDriver(Interface):
    """
    The methods we use to talk to a memcache server.

    Implementations wrap one memcache client library. Errors raised
    by the library are allowed to propagate unchanged.
    """

    def get(key):
        """
        Return the value stored for *key*, or None.
        """

    def get_multi(keys):
        """
        Return a mapping of the found *keys* to their values.

        Keys that aren't present may be missing from the mapping
        or map to None.
        """

    def set(key, value, ttl=0):
        """
        Store *value* under *key*, expiring after *ttl* seconds
        (0 means never).
        """

    def set_multi(mapping, ttl=0):
        """
        Store each key and value of *mapping*.
        """

    def delete(key):
        """
        Remove *key*. Removing a missing key is not an error.
        """

    def delete_multi(keys):
        """
        Remove each of *keys*.
        """

    def flush_all():
        """
        Invalidate every item on every server.
        """

    def ttl(key):
        """
        Return the number of seconds until *key* expires, -1 if it
        never expires, or None if it is not present.
        """

    def slab_stats():
        """
        Return the slab statistics of the server(s).

        This is either a flat sequence of
        :class:`memcachedstore.keys.SlabDescriptor`, or a sequence with
        one mapping per server. A per-server mapping maps slab ids to a
        mapping with at least a ``number`` entry (the number of items),
        and may contain other, non-numeric, keys naming the server.
        """

    def cachedump(slab_id, item_count):
        """
        Return a sequence of :class:`memcachedstore.keys.CacheDumpEntry`
        for up to *item_count* items of slab *slab_id*.
        """

    def disconnect_all():
        """
        Close all connections.
        """


class IStore(Interface):
    """
    A store for a generic caching façade.

    Each asynchronous method returns a :class:`gevent.event.AsyncResult`.
    If a *callback* is given, it is called as ``callback(error, result)``
    when the operation finishes.
    """

    name = Attribute("The name of the store, 'memcached'.")

    def get(key, options=None, callback=None):
        """
        Resolves to the value of *key*, or None.
        """

    def set(key, value, options=None, callback=None):
        """
        Resolves to True once stored. *options* may be a number of
        seconds to live, or a mapping with a ``ttl`` key.
        """

    def delete(key, options=None, callback=None):
        """
        Resolves to None once removed.
        """

    def mget(keys, options=None, callback=None):
        """
        Resolves to a list of values, in the order of *keys*.
        """

    def mset(mapping, options=None, callback=None):
        """
        Resolves to True once all items are stored.
        """

    def mdel(keys, options=None, callback=None):
        """
        Resolves to None once all keys are removed.
        """

    def reset(callback=None):
        """
        Remove everything. Resolves to None.
        """

    def ttl(key, callback=None):
        """
        Resolves to the seconds *key* has left to live.
        """

    def keys(pattern=None, callback=None):
        """
        Resolves to a list of every live key.

        *pattern* is accepted for compatibility and ignored.
        """

    def get_client(callback=None):
        """
        Resolves to a mapping ``{'client': driver}``.
        """

    def is_cacheable_value(value):
        """
        Should *value* be stored?
        """

    def close():
        """
        Release the driver's connections.
        """


class MemcachedStoreError(Exception):
    """
    Base for the exceptions raised by this package.

    Errors raised by a driver are not converted to these.
    """


class ConfigurationError(MemcachedStoreError, ValueError):
    """
    Raised when the store can't be created from its options.
    """


class ProtocolError(MemcachedStoreError):
    """
    Raised when a server response doesn't have the expected shape.
    """


class UnsupportedCommand(ProtocolError):
    """
    Raised when a driver can't issue the command needed for an operation.
    """

    def __init__(self, driver, command):
        super(UnsupportedCommand, self).__init__(driver, command)
        self.driver = driver
        self.command = command

    def __str__(self):
        return 'Driver %s does not support %r' % (self.driver, self.command)


class EnumerationTimeout(MemcachedStoreError):
    """
    Raised when listing the keys takes longer than allowed.
    """

    def __init__(self, timeout):
        super(EnumerationTimeout, self).__init__(timeout)
        self.timeout = timeout

    def __str__(self):
        return 'Key enumeration did not finish in %ss' % (self.timeout,)
