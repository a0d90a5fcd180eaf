#!/usr/bin/env python

from datetime import timedelta
from unittest import TestCase, main

from ttl_memo.expiry import DEFAULT_TTL, ExpiryPolicy, is_valid, normalize_ttl
from ttl_memo.store import CacheEntry


class TestIsValid(TestCase):
    def test_boundary_is_expired(self):
        entry = CacheEntry(100, 'x')
        self.assertTrue(is_valid(entry, 10, 100))
        self.assertTrue(is_valid(entry, 10, 109.999))
        self.assertFalse(is_valid(entry, 10, 110))
        self.assertFalse(is_valid(entry, 10, 1000))

    def test_zero_ttl_is_always_expired(self):
        self.assertFalse(is_valid(CacheEntry(100, 'x'), 0, 100))


class TestNormalizeTTL(TestCase):
    def test_numbers(self):
        self.assertEqual(5, normalize_ttl(5))
        self.assertEqual(0.5, normalize_ttl(0.5))
        self.assertEqual(0, normalize_ttl(0))

    def test_timedelta(self):
        self.assertEqual(90, normalize_ttl(timedelta(minutes=1, seconds=30)))

    def test_negative(self):
        with self.assertRaises(ValueError):
            normalize_ttl(-1)
        with self.assertRaises(ValueError):
            normalize_ttl(timedelta(seconds=-1))

    def test_nan(self):
        with self.assertRaises(ValueError):
            normalize_ttl(float('nan'))

    def test_invalid_types(self):
        for value in ('10', None, True, [10]):
            with self.subTest(value=value), self.assertRaises(TypeError):
                normalize_ttl(value)


class TestExpiryPolicy(TestCase):
    def test_defaults(self):
        policy = ExpiryPolicy()
        self.assertEqual(DEFAULT_TTL, policy.ttl)
        self.assertEqual(3600, policy.ttl)
        self.assertTrue(policy.is_valid(CacheEntry(policy.now(), 'x')))

    def test_uses_timer(self):
        now = [0]
        policy = ExpiryPolicy(10, timer=lambda: now[0])
        entry = CacheEntry(policy.now(), 'x')
        now[0] = 9
        self.assertTrue(policy.is_valid(entry))
        self.assertFalse(policy.is_expired(entry))
        now[0] = 10
        self.assertFalse(policy.is_valid(entry))
        self.assertTrue(policy.is_expired(entry))

    def test_explicit_now(self):
        policy = ExpiryPolicy(10, timer=lambda: 1000)
        self.assertTrue(policy.is_valid(CacheEntry(0, 'x'), now=5))
        self.assertTrue(policy.is_expired(CacheEntry(0, 'x'), now=10))

    def test_repr(self):
        self.assertIn('ttl=10', repr(ExpiryPolicy(10)))


if __name__ == '__main__':
    main(verbosity=2)
