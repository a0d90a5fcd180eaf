#!/usr/bin/env python

import logging
import sys
import tempfile
import unittest
from pathlib import Path

from ttl_memo import memoize
from ttl_memo.logging import init_logging, create_filter, DatetimeFormatter


class LoggingInitTest(unittest.TestCase):
    def _cleanup_handlers(self, *names):
        for name in names:
            logger = logging.getLogger(name)
            while logger.handlers:
                logger.handlers[0].close()
                del logger.handlers[0]

    def test_log_path(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir, 'logs', 'test.log')
            log_path = init_logging(log_path=path.as_posix(), names='test_log_path', streams=False)
            self.assertEqual(path, log_path)
            logging.getLogger('test_log_path').info('hello world')
            self._cleanup_handlers('test_log_path')
            self.assertIn('hello world', path.read_text('utf-8'))

    def test_no_log_path(self):
        self.assertIsNone(init_logging(names='test_no_log_path', streams=False))
        self.assertEqual([], logging.getLogger('test_no_log_path').handlers)

    def test_stream_handler_levels(self):
        init_logging(3, names='test_streams')
        try:
            handlers = {h.name: h for h in logging.getLogger('test_streams').handlers}
            self.assertEqual({'stdout', 'stderr'}, set(handlers))
            self.assertEqual(9, handlers['stdout'].level)
            self.assertIs(sys.stdout, handlers['stdout'].stream)
            self.assertIs(sys.stderr, handlers['stderr'].stream)
        finally:
            self._cleanup_handlers('test_streams')

    def test_replace_handlers(self):
        init_logging(names='test_replace')
        init_logging(names='test_replace')
        try:
            self.assertEqual(2, len(logging.getLogger('test_replace').handlers))
        finally:
            self._cleanup_handlers('test_replace')

    def test_level_names(self):
        init_logging(names='test_level_names', streams=False)
        self.assertEqual('DBG_9', logging.getLevelName(9))
        self.assertEqual('VERBOSE', logging.getLevelName(19))

    def test_cache_hits_logged(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir, 'test.log')
            init_logging(log_path=path, names='ttl_memo.decorate', streams=False, file_lvl=9)
            try:
                func = memoize(lambda a: a)
                func(1)
                func(1)
            finally:
                self._cleanup_handlers('ttl_memo.decorate')
            content = path.read_text('utf-8')

        self.assertIn('Stored new value', content)
        self.assertIn('Returning cached value', content)


class FilterAndFormatterTest(unittest.TestCase):
    def test_create_filter(self):
        log_filter = create_filter(lambda r: r.levelno >= logging.WARNING)
        info = logging.LogRecord('test', logging.INFO, __file__, 1, 'info', None, None)
        warning = logging.LogRecord('test', logging.WARNING, __file__, 1, 'warning', None, None)
        self.assertFalse(log_filter.filter(info))
        self.assertTrue(log_filter.filter(warning))

    def test_datetime_formatter(self):
        record = logging.LogRecord('test', logging.INFO, __file__, 1, 'hello', None, None)
        record.created = 1_600_000_000.123456
        formatter = DatetimeFormatter('%(asctime)s %(message)s', '%Y-%m-%d %H:%M:%S.%f')
        formatted = formatter.format(record)
        self.assertRegex(formatted, r'^2020-09-\d\d \d\d:\d\d:\d\d\.123456 hello$')


if __name__ == '__main__':
    try:
        unittest.main(warnings='ignore', verbosity=2, exit=False)
    except KeyboardInterrupt:
        print()
