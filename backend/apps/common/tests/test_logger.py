import logging
import unittest

from apps.common.logger import AppLogger, get_logger


class AppLoggerTests(unittest.TestCase):
    def test_bind_returns_child_with_merged_context(self):
        base = get_logger('apps.tests.logger').bind(component='carts')
        child = base.bind(layer='service')
        with self.assertLogs('apps.tests.logger', level='INFO') as captured:
            base.info('from base')
            child.info('from child')
        self.assertEqual(captured.records[0].context, {'component': 'carts'})
        self.assertEqual(captured.records[1].context, {'component': 'carts', 'layer': 'service'})

    def test_message_carries_context_pairs(self):
        log = get_logger('apps.tests.logger').bind(component='carts')
        with self.assertLogs('apps.tests.logger', level='INFO') as captured:
            log.info('Item added', itemId='P1', quantity=2)
        record = captured.records[0]
        self.assertEqual(record.getMessage(), 'Item added | component=carts itemId=P1 quantity=2')
        self.assertEqual(record.context, {'component': 'carts', 'itemId': 'P1', 'quantity': 2})

    def test_plain_message_without_context(self):
        with self.assertLogs('apps.tests.logger', level='WARNING') as captured:
            AppLogger('apps.tests.logger').warning('Storage missing')
        self.assertEqual(captured.records[0].getMessage(), 'Storage missing')

    def test_exception_attaches_traceback(self):
        log = get_logger('apps.tests.logger')
        with self.assertLogs('apps.tests.logger', level='ERROR') as captured:
            try:
                raise OSError('disk full')
            except OSError:
                log.exception('Write failed', key='cartItems')
        record = captured.records[0]
        self.assertEqual(record.levelno, logging.ERROR)
        self.assertIsNotNone(record.exc_info)

    def test_records_below_threshold_are_skipped(self):
        log = get_logger('apps.tests.logger.quiet')
        with self.assertLogs('apps.tests.logger.quiet', level='ERROR') as captured:
            log.info('hidden')
            log.error('shown')
        self.assertEqual([r.getMessage() for r in captured.records], ['shown'])
