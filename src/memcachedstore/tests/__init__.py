"""memcachedstore.tests package"""

import unittest

from unittest import mock as _mock

from memcachedstore.options import Options

mock = _mock


class TestCase(unittest.TestCase):
    """
    General tests.

    This class supplies some supporting help for cleanups.
    """

    def _closing(self, o):
        """
        Close the object using its 'close' method *after* invoking
        all of the `tearDown` stack, and even running if `setUp`
        fails.

        Returns the given object.
        """
        self.addCleanup(o.close)
        return o


class MockOptions(Options):

    @classmethod
    def from_args(cls, **kwargs):
        inst = cls()
        for k, v in kwargs.items():
            setattr(inst, k, v)
        return inst

    def __setattr__(self, name, value):
        if name not in Options.valid_option_names():
            raise AttributeError("Invalid option", name) # pragma: no cover
        object.__setattr__(self, name, value)


class MockOptionsWithFakeMemcache(MockOptions):
    driver = 'memcachedstore.tests.fakecache'
    servers = 'host:9999'
