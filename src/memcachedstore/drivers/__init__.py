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
Memcache drivers.

Each module here wraps one client library in a ``Client`` class
providing :class:`~memcachedstore.interfaces.IMemcacheDriver`.
"""
import logging
import types

from zope.dottedname.resolve import resolve

from memcachedstore.interfaces import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    'driver_factory',
    'create_driver',
]


def driver_factory(driver):
    """
    Return the callable that makes driver objects.

    *driver* is a callable, which is returned as-is, or a dotted name.
    A dotted name may name a callable or a module; a module must
    define a ``Client``.
    """
    if not driver:
        raise ConfigurationError("memcache driver not specified")

    if isinstance(driver, str):
        try:
            driver = resolve(driver)
        except ImportError as e:
            raise ConfigurationError("memcache driver %r is not importable: %s" % (driver, e))

    if isinstance(driver, types.ModuleType):
        module = driver
        driver = getattr(module, 'Client', None)
        if driver is None:
            raise ConfigurationError("memcache driver module %s has no Client" % (module.__name__,))

    if not callable(driver):
        raise ConfigurationError("memcache driver %r is not callable" % (driver,))
    return driver


def create_driver(options):
    """
    Create the driver configured by *options* (an
    :class:`~memcachedstore.options.Options`).
    """
    factory = driver_factory(options.driver)
    servers = options.server_list
    logger.debug("Using driver %s for servers %s", factory, servers)
    return factory(servers, **(options.driver_options or {}))
