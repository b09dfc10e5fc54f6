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

from memcachedstore._util import get_duration_from_environ
from memcachedstore._util import get_positive_integer_from_environ


class Options(object):
    """Options for configuring a :class:`.MemcachedStore`.

    These parameters can be provided as keyword options in the
    :class:`.MemcachedStore` constructor. For example::

        store = MemcachedStore(servers=['cache1:11211', 'cache2:11211'], ttl=60)

    Alternatively, the constructor accepts an options parameter,
    which should be an Options instance.
    """

    #: The driver to wrap the memcache connection with. Either a
    #: dotted name (of a module defining ``Client``, or of a factory)
    #: or a callable. It is called as ``driver(servers, **driver_options)``.
    driver = 'memcachedstore.drivers.memcache_wrapper'
    #: List of memcache servers, or a whitespace separated string.
    servers = ('127.0.0.1:11211',)
    #: Extra keyword arguments for the driver.
    driver_options = None

    #: Seconds to live for set operations that don't give a ttl.
    #: 0 means no expiry.
    ttl = 0
    #: Optional predicate deciding whether a value may be stored.
    is_cacheable_value = None

    #: How long to wait for ``keys()``, in seconds. None waits forever.
    keys_timeout = get_duration_from_environ('MEMCACHEDSTORE_KEYS_TIMEOUT', None)
    #: How many existence checks ``keys()`` may have outstanding.
    keys_concurrency = get_positive_integer_from_environ('MEMCACHEDSTORE_KEYS_CONCURRENCY', 50)

    def __init__(self, **kwoptions):
        for key, value in kwoptions.items():
            if not hasattr(self, key):
                raise TypeError("Unknown parameter: %s (Known: %s)" % (
                    key,
                    self.valid_option_names()
                ))
            setattr(self, key, value)

    @classmethod
    def valid_option_names(cls):
        return sorted(
            x
            for x in dir(cls)
            if not x.startswith('_')
            and not callable(getattr(cls, x))
            and not isinstance(getattr(cls, x), property)
        )

    @property
    def server_list(self):
        servers = self.servers or ()
        if isinstance(servers, str):
            servers = servers.split()
        return list(servers)

    def __repr__(self):
        opts = []
        for k, v in sorted(self.__dict__.items()):
            opt = '%s=%r' % (k, v)
            opts.append(opt)
        opts = ', '.join(opts)
        return 'memcachedstore.options.Options(%s)' % (opts,)

    def __eq__(self, other):
        if not isinstance(other, Options):
            return NotImplemented
        return all(getattr(self, key) == getattr(other, key)
                   for key in self.valid_option_names())

    def __hash__(self):
        # Equal objects must have equal hashes; we don't expect
        # to hash these, and the values may not be hashable.
        return 42

    def copy(self, **kw):
        """
        Produce a copy of these options, with keyword arguments overriding.
        """
        options = dict(self.__dict__)
        options.update(kw)
        return self.__class__(**options)
