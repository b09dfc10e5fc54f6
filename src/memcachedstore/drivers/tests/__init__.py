# -*- coding: utf-8 -*-
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
Helpers for driver testing.

"""
import unittest

from hamcrest import assert_that
from nti.testing.matchers import validly_provides

from memcachedstore.interfaces import IMemcacheDriver
from memcachedstore.tests import TestCase
from memcachedstore.tests import mock


class AbstractDriverTests(TestCase):
    """
    Tests that all drivers should be able to pass.

    Subclasses name the module and the class they patch; the
    patched client library object is available as ``self.library``.
    """

    #: The dotted name of the library client class to replace.
    library_client = None

    servers = ['localhost:11211']

    def getClass(self):
        raise unittest.SkipTest("No implementation defined.")

    def setUp(self):
        super(AbstractDriverTests, self).setUp()
        patcher = mock.patch(self.library_client)
        self.library_class = patcher.start()
        self.addCleanup(patcher.stop)
        self.library = self.library_class.return_value

    def _makeOne(self, **kwargs):
        return self.getClass()(self.servers, **kwargs)

    def test_provides(self):
        assert_that(self._makeOne(), validly_provides(IMemcacheDriver))

    def test_get(self):
        self.library.get.return_value = 'bar'
        self.assertEqual(self._makeOne().get('foo'), 'bar')
        self.library.get.assert_called_once_with('foo')

    def test_errors_propagate(self):
        error = ConnectionError("down")
        self.library.get.side_effect = error
        with self.assertRaises(ConnectionError) as exc:
            self._makeOne().get('foo')
        self.assertIs(exc.exception, error)
