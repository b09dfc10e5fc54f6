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
An implementation of ``IStore`` using a memcache driver.

Each operation runs in its own greenlet and returns a
:class:`gevent.event.AsyncResult`::

    store = MemcachedStore(servers=['127.0.0.1:11211'])
    store.set('foo', 'bar', 30).get()
    assert store.get('foo').get() == 'bar'

Pass a callback, either in place of the options or by keyword, to be
told ``(error, result)`` when the operation finishes::

    store.get('foo', lambda err, value: print(err, value))
"""
import logging
from collections.abc import Mapping

from zope import interface

from memcachedstore._util import dispatch
from memcachedstore._util import metricmethod_sampled
from memcachedstore.drivers import create_driver
from memcachedstore.interfaces import ConfigurationError
from memcachedstore.interfaces import IStore
from memcachedstore.keys import KeyEnumerator
from memcachedstore.options import Options

logger = logging.getLogger(__name__)


def _split_callback(options, callback):
    # The façade may pass the callback where the options go.
    if callback is None and callable(options):
        return None, options
    return options, callback


def _check_options(options):
    if options is not None and not isinstance(options, Mapping):
        raise TypeError("Options must be a mapping, not %r" % (options,))
    return options


@interface.implementer(IStore)
class MemcachedStore(object):

    name = 'memcached'

    _key_enumerator_factory = KeyEnumerator

    @classmethod
    def from_options(cls, options):
        """
        Create and return a MemcachedStore configured by *options*.
        """
        return cls(options)

    def __init__(self, options=None, **kwoptions):
        if options is None and not kwoptions:
            raise ConfigurationError("memcache options not defined")
        if options is None:
            options = Options(**kwoptions)
        elif isinstance(options, Mapping):
            options = Options(**dict(options, **kwoptions))
        elif kwoptions:
            options = options.copy(**kwoptions)
        self.options = options
        self.client = create_driver(options)
        logger.debug("Created %s using %s", self, self.client)

    def __repr__(self):
        return '<%s at 0x%x client=%r>' % (type(self).__name__, id(self), self.client)

    def _ttl(self, options):
        default = self.options.ttl
        if options is None:
            return default
        if isinstance(options, bool):
            raise TypeError("A ttl must be a number, not %r" % (options,))
        if isinstance(options, (int, float)):
            return int(options)
        if isinstance(options, Mapping):
            ttl = options.get('ttl')
            return default if ttl is None else int(ttl)
        raise TypeError("Options must be a ttl or a mapping, not %r" % (options,))

    def get(self, key, options=None, callback=None):
        options, callback = _split_callback(options, callback)
        _check_options(options)
        return dispatch(self._get, (key,), callback)

    def set(self, key, value, options=None, callback=None):
        options, callback = _split_callback(options, callback)
        return dispatch(self._set, (key, value, self._ttl(options)), callback)

    def delete(self, key, options=None, callback=None):
        options, callback = _split_callback(options, callback)
        _check_options(options)
        return dispatch(self._delete, (key,), callback)

    del_ = delete

    def mget(self, keys, options=None, callback=None):
        options, callback = _split_callback(options, callback)
        _check_options(options)
        if isinstance(keys, str):
            keys = [keys]
        return dispatch(self._mget, (list(keys),), callback)

    def mset(self, mapping, options=None, callback=None):
        options, callback = _split_callback(options, callback)
        return dispatch(self._mset, (dict(mapping), self._ttl(options)), callback)

    def mdel(self, keys, options=None, callback=None):
        options, callback = _split_callback(options, callback)
        _check_options(options)
        if isinstance(keys, str):
            keys = [keys]
        return dispatch(self._mdel, (list(keys),), callback)

    def reset(self, callback=None):
        return dispatch(self._reset, (), callback)

    def ttl(self, key, callback=None):
        return dispatch(self._query_ttl, (key,), callback)

    def keys(self, pattern=None, callback=None):
        """
        Resolves to every live key. Potentially very expensive: memcache
        has no simple way to list keys.

        *pattern* has no use; it's retained for interface compatibility.
        """
        _, callback = _split_callback(pattern, callback)
        return dispatch(self._keys, (), callback)

    def get_client(self, callback=None):
        """
        Resolves to ``{'client': driver}``, giving access to the
        underlying driver.
        """
        return dispatch(lambda: {'client': self.client}, (), callback)

    def is_cacheable_value(self, value):
        """
        Should *value* be cached?

        Uses the ``is_cacheable_value`` option if one is configured;
        otherwise caches everything except None.
        """
        predicate = self.options.is_cacheable_value
        if predicate is not None:
            return predicate(value)
        return value is not None

    def close(self):
        if self.client is not None:
            self.client.disconnect_all()
            self.client = None

    release = close

    @metricmethod_sampled
    def _get(self, key):
        return self.client.get(key)

    @metricmethod_sampled
    def _set(self, key, value, ttl):
        self.client.set(key, value, ttl)
        return True

    @metricmethod_sampled
    def _delete(self, key):
        self.client.delete(key)

    @metricmethod_sampled
    def _mget(self, keys):
        found = self.client.get_multi(keys) or {}
        return [found.get(key) for key in keys]

    @metricmethod_sampled
    def _mset(self, mapping, ttl):
        self.client.set_multi(mapping, ttl)
        return True

    @metricmethod_sampled
    def _mdel(self, keys):
        self.client.delete_multi(keys)

    @metricmethod_sampled
    def _reset(self):
        self.client.flush_all()

    @metricmethod_sampled
    def _query_ttl(self, key):
        return self.client.ttl(key)

    def _keys(self):
        enumerator = self._key_enumerator_factory(
            concurrency=self.options.keys_concurrency,
            timeout=self.options.keys_timeout,
        )
        return enumerator.enumerate(self.client)
