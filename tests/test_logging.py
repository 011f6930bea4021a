# tests/test_logging.py

import logging

from history_indexer.core.logging import IndexerFormatter, IndexerLogger, LoggingMixin


class Worker(LoggingMixin):
    pass


def record(**context):
    rec = logging.LogRecord('history_indexer.tasks', logging.INFO, __file__, 1, "Synced", None, None)
    for key, value in context.items():
        setattr(rec, key, value)
    return rec


def test_logger_names_are_prefixed_once():
    assert IndexerLogger.get_logger('tasks.importer').name == 'history_indexer.tasks.importer'
    assert IndexerLogger.get_logger('history_indexer.tasks').name == 'history_indexer.tasks'


def test_mixin_logger_is_named_after_class():
    assert Worker().logger.name == f'history_indexer.{__name__}.Worker'


def test_structured_format_appends_known_context():
    line = IndexerFormatter(include_context=True).format(record(pair_id=7, height=101, url="ignored"))

    assert line.endswith("INFO - Synced | pair_id=7 height=101")


def test_plain_format_has_no_context():
    line = IndexerFormatter().format(record(pair_id=7))

    assert line.endswith("history_indexer.tasks - INFO - Synced")


def test_context_reaches_the_record(caplog):
    logger = IndexerLogger.get_logger('tests.logging')

    with caplog.at_level(logging.INFO):
        Worker().log_info("Imported", pair_id=3)
        logger.info("plain")

    rec = next(r for r in caplog.records if r.getMessage() == "Imported")
    assert rec.pair_id == 3
