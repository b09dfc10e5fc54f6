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

import memcache

from memcachedstore.interfaces import ProtocolError
from memcachedstore.keys import CacheDumpEntry
from memcachedstore.keys import KeyEnumerator
from memcachedstore.keys import SlabDescriptor
from memcachedstore.keys import normalize_slabs

from . import AbstractDriverTests
from . import mock

# Captured before any test replaces it.
RealClient = memcache.Client


class TestMemcacheWrapper(AbstractDriverTests):

    library_client = 'memcachedstore.drivers.memcache_wrapper.memcache.Client'

    def getClass(self):
        from memcachedstore.drivers.memcache_wrapper import Client
        return Client

    def setUp(self):
        super(TestMemcacheWrapper, self).setUp()
        self.library.servers = [mock.Mock(), mock.Mock()]

    def test_constructor_arguments(self):
        self._makeOne(debug=0)
        self.library_class.assert_called_once_with(self.servers, debug=0)

    def test_set_passes_ttl(self):
        self._makeOne().set('foo', 'bar', 30)
        self.library.set.assert_called_once_with('foo', 'bar', time=30)

    def test_multi(self):
        client = self._makeOne()
        client.set_multi({'a': 1}, 5)
        self.library.set_multi.assert_called_once_with({'a': 1}, time=5)
        client.get_multi(['a'])
        self.library.get_multi.assert_called_once_with(['a'])
        client.delete_multi(['a'])
        self.library.delete_multi.assert_called_once_with(['a'])

    def test_slab_stats_per_server(self):
        self.library.get_stats.return_value = [
            ('10.0.0.1:11211 (1)', {'items:1:number': '2', 'items:1:age': '9',
                                    'items:3:number': '1'}),
            ('10.0.0.2:11211 (1)', {'items:1:number': '4'}),
        ]
        stats = self._makeOne().slab_stats()
        self.library.get_stats.assert_called_once_with('items')
        self.assertEqual(stats, [
            {'1': {'number': '2', 'age': '9'}, '3': {'number': '1'},
             'server': '10.0.0.1:11211 (1)'},
            {'1': {'number': '4'}, 'server': '10.0.0.2:11211 (1)'},
        ])
        self.assertEqual(normalize_slabs(stats),
                         [SlabDescriptor(1, 4), SlabDescriptor(3, 1)])

    def test_slab_stats_unexpected(self):
        self.library.get_stats.return_value = [('a', {'pid': '12'}), ('b', {})]
        with self.assertRaises(ProtocolError):
            self._makeOne().slab_stats()

    def test_slab_stats_no_server_answers(self):
        self.library.get_stats.return_value = []
        with self.assertRaisesRegex(ConnectionError, '0 of 2'):
            self._makeOne().slab_stats()

    def test_slab_stats_one_server_down(self):
        self.library.get_stats.return_value = [('a', {'items:1:number': '2'})]
        with self.assertRaisesRegex(ConnectionError, '1 of 2'):
            self._makeOne().slab_stats()

    def test_cachedump_server_down(self):
        self.library.get_stats.return_value = [('a', {'foo': '[3 b; 0 s]'})]
        with self.assertRaises(ConnectionError):
            self._makeOne().cachedump(1, 2)

    def test_enumerate_dead_server(self):
        self.library.get_stats.return_value = []
        with self.assertRaises(ConnectionError):
            KeyEnumerator().enumerate(self._makeOne())
        self.library.get.assert_not_called()

    def test_cachedump_flattens_servers(self):
        self.library.get_stats.return_value = [
            ('a', {'foo': '[3 b; 0 s]'}),
            ('b', {'bar': '[10 b; 1700000000 s]'}),
        ]
        entries = self._makeOne().cachedump(1, 2)
        self.library.get_stats.assert_called_once_with('cachedump 1 2')
        self.assertEqual(entries, [
            CacheDumpEntry('foo', 3, 0),
            CacheDumpEntry('bar', 10, 1700000000),
        ])

    def test_ttl(self):
        server = mock.Mock()
        server.readline.return_value = b'HD t25'
        self.library._get_server.return_value = (server, b'foo')
        self.assertEqual(self._makeOne().ttl('foo'), 25)
        self.library.check_key.assert_called_once_with(b'foo')
        self.library._get_server.assert_called_once_with(b'foo')
        server.send_cmd.assert_called_once_with(b'mg foo t')

    def test_ttl_rejects_unsafe_keys(self):
        checker = RealClient([])
        self.library.check_key.side_effect = checker.check_key
        client = self._makeOne()
        for key in ('x t\r\nflush_all', 'two words', 'k' * 251):
            with self.assertRaises(RealClient.MemcachedKeyError):
                client.ttl(key)
        self.library._get_server.assert_not_called()

    def test_ttl_missing(self):
        server = mock.Mock()
        server.readline.return_value = b'EN'
        self.library._get_server.return_value = (server, b'foo')
        self.assertIsNone(self._makeOne().ttl('foo'))

    def test_ttl_no_server(self):
        self.library._get_server.return_value = (None, None)
        self.assertIsNone(self._makeOne().ttl('foo'))

    def test_ttl_connection_closed(self):
        server = mock.Mock()
        server.readline.return_value = ''
        self.library._get_server.return_value = (server, b'foo')
        with self.assertRaises(ConnectionError):
            self._makeOne().ttl('foo')

    def test_enumerate(self):
        self.library.get_stats.side_effect = lambda arg: {
            'items': [('a', {'items:1:number': '2'}),
                      ('b', {'items:1:number': '1', 'items:2:number': '1'})],
            'cachedump 1 2': [('a', {'k1': '[1 b; 0 s]', 'k2': '[1 b; 0 s]'}),
                              ('b', {'k3': '[1 b; 0 s]'})],
            'cachedump 2 1': [('a', {}), ('b', {'gone': '[1 b; 0 s]'})],
        }[arg]
        self.library.get.side_effect = lambda key: None if key == 'gone' else 'v'
        keys = KeyEnumerator().enumerate(self._makeOne())
        self.assertEqual(sorted(keys), ['k1', 'k2', 'k3'])

    def test_disconnect_all(self):
        self._makeOne().disconnect_all()
        self.library.disconnect_all.assert_called_once_with()
