"""
Unit tests for the notifiers (utils/logging.py).
"""

import pytest
from loguru import logger

from innobackup_runner.utils.logging import LoguruNotifier, Notifier


class TestNotifier:

    def test_is_abstract(self):
        with pytest.raises(TypeError):
            Notifier()

    def test_subclass_without_notify(self):
        class Silent(Notifier):
            pass

        with pytest.raises(TypeError):
            Silent()

    def test_loguru_notifier(self):
        records = []
        sink = logger.add(lambda m: records.append(m.record), level='DEBUG')
        try:
            LoguruNotifier().notify('deleting 2026-10-01_03-00-00', level='WARNING')
        finally:
            logger.remove(sink)

        assert [(x['level'].name, x['message']) for x in records] == \
            [('WARNING', 'deleting 2026-10-01_03-00-00')]
