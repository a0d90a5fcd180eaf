#!/usr/bin/env python

from unittest import TestCase, main

from ttl_memo.expiry import ExpiryPolicy
from ttl_memo.store import CacheEntry, CacheStore


class TestCacheEntry(TestCase):
    def test_equality(self):
        self.assertEqual(CacheEntry(1, 'a'), CacheEntry(1, 'a'))
        self.assertNotEqual(CacheEntry(1, 'a'), CacheEntry(2, 'a'))
        self.assertNotEqual(CacheEntry(1, 'a'), (1, 'a'))

    def test_mutable(self):
        entry = CacheEntry(1, 'a')
        entry.value = 'b'
        self.assertEqual('b', entry.value)

    def test_not_hashable(self):
        with self.assertRaises(TypeError):
            hash(CacheEntry(1, 'a'))

    def test_repr(self):
        self.assertEqual("<CacheEntry(timestamp=1, value='a')>", repr(CacheEntry(1, 'a')))


class TestCacheStore(TestCase):
    def test_get_and_set(self):
        store = CacheStore()
        self.assertIsNone(store.get('a'))
        entry = CacheEntry(1, 'x')
        store.set('a', entry)
        self.assertIs(entry, store.get('a'))
        self.assertIs(entry, store['a'])

    def test_mapping_methods(self):
        store = CacheStore({'a': CacheEntry(1, 'x')})
        store['b'] = CacheEntry(2, 'y')
        self.assertEqual(2, len(store))
        self.assertEqual(['a', 'b'], list(store))
        self.assertIn('a', store)
        del store['a']
        self.assertNotIn('a', store)
        with self.assertRaises(KeyError):
            store['a']  # noqa
        store.clear()
        self.assertEqual(0, len(store))

    def test_initial_entries_are_copied(self):
        entries = {'a': CacheEntry(1, 'x')}
        store = CacheStore(entries)
        store.clear()
        self.assertEqual(1, len(entries))

    def test_expire(self):
        store = CacheStore({'a': CacheEntry(0, 'x'), 'b': CacheEntry(5, 'y'), 'c': CacheEntry(9, 'z')})
        policy = ExpiryPolicy(5, timer=lambda: 10)
        self.assertEqual(2, store.expire(policy))
        self.assertEqual(['c'], list(store))

    def test_expire_explicit_now(self):
        store = CacheStore({'a': CacheEntry(0, 'x')})
        policy = ExpiryPolicy(5, timer=lambda: 100)
        self.assertEqual(0, store.expire(policy, now=4.5))
        self.assertEqual(1, store.expire(policy, now=5))

    def test_repr(self):
        self.assertEqual('<CacheStore[entries=1]>', repr(CacheStore({'a': CacheEntry(0, 'x')})))


if __name__ == '__main__':
    main(verbosity=2)
