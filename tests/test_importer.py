# tests/test_importer.py

import logging
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import msgspec
import pytest

from history_indexer.core.errors import MiddlewareError
from history_indexer.database.base import utc_now
from history_indexer.tasks import LiquidityHistoryImporter
from history_indexer.types import ErrorIdentity, EventType

from conftest import OTHER_PAIR_ADDRESS, make_log


def scenario_logs():
    return [
        make_log("PairMint", 101, args=["ak_sender", "100", "100"]),
        make_log("Sync", 102, args=["200", "200"]),
        make_log("SwapTokens", 103, data="1|0|0|1"),
        make_log("PairBurn", 104, data="101|99"),
    ]


def history(db_manager, pair_id):
    repo = db_manager.get_liquidity_history_repo()
    with db_manager.get_session() as session:
        return repo.get_for_scope(session, pair_id=pair_id)


def error_records(db_manager):
    repo = db_manager.get_liquidity_history_error_repo()
    with db_manager.get_session() as session:
        return repo.list_all(session)


@pytest.fixture
def importer(db_manager, middleware, fiat_price_client, config):
    return LiquidityHistoryImporter(db_manager, middleware, fiat_price_client, config)


def test_import_builds_reserve_ledger(importer, db_manager, middleware, pair):
    middleware.logs = scenario_logs()

    summary = importer.import_history()

    entries = history(db_manager, pair.id)
    assert [e.event_type for e in entries] == [
        EventType.CREATE_PAIR,
        EventType.PAIR_MINT,
        EventType.SYNC,
        EventType.SWAP_TOKENS,
        EventType.PAIR_BURN,
    ]
    assert [(e.reserve0, e.reserve1) for e in entries] == [
        (0, 0), (100, 100), (200, 200), (201, 199), (100, 100)
    ]
    assert [(e.delta_reserve0, e.delta_reserve1) for e in entries] == [
        (0, 0), (100, 100), (100, 100), (1, -1), (-101, -99)
    ]
    assert summary.pairs == 1
    assert summary.synced_logs == 4
    assert summary.failed_logs == 0


def test_create_pair_entry_comes_from_contract_creation(importer, db_manager, middleware, pair):
    importer.import_history()

    entries = history(db_manager, pair.id)
    assert len(entries) == 1
    create = entries[0]
    assert create.event_type == EventType.CREATE_PAIR
    assert create.micro_block_hash == "mh_create"
    assert create.transaction_hash == "th_create"
    assert create.height == 100
    assert create.micro_block_time == 1_000
    assert (create.transaction_index, create.log_index) == (0, 0)
    assert create.token0_native_price is None


def test_reserve_delta_consistency(importer, db_manager, middleware, pair):
    middleware.logs = scenario_logs()
    importer.import_history()

    entries = history(db_manager, pair.id)
    for previous, current in zip(entries, entries[1:]):
        if current.event_type in (EventType.SYNC, EventType.CREATE_PAIR):
            continue
        assert current.reserve0 == previous.reserve0 + current.delta_reserve0
        assert current.reserve1 == previous.reserve1 + current.delta_reserve1


def test_replay_adds_nothing(importer, db_manager, middleware, pair):
    middleware.logs = scenario_logs()
    importer.import_history()
    before = [(e.id, e.reserve0, e.reserve1) for e in history(db_manager, pair.id)]

    summary = importer.import_history()

    assert [(e.id, e.reserve0, e.reserve1) for e in history(db_manager, pair.id)] == before
    assert summary.synced_logs == 0


def test_interrupted_import_resumes_from_last_entry(importer, db_manager, middleware, pair):
    logs = scenario_logs()
    middleware.logs = logs[:2]
    importer.import_history()

    middleware.logs = logs
    summary = importer.import_history()

    entries = history(db_manager, pair.id)
    assert summary.synced_logs == 2
    assert [(e.reserve0, e.reserve1) for e in entries] == [
        (0, 0), (100, 100), (200, 200), (201, 199), (100, 100)
    ]


def test_non_ledger_events_are_ignored(importer, db_manager, middleware, pair):
    middleware.logs = [
        make_log("PairMint", 101, args=["ak_sender", "5", "7"]),
        make_log("Transfer", 101, log_idx=1, args=["ak_a", "ak_b", "5"]),
    ]

    summary = importer.import_history()

    assert summary.synced_logs == 1
    assert summary.failed_logs == 0
    assert len(history(db_manager, pair.id)) == 2


def test_logs_are_applied_in_chain_order(importer, db_manager, middleware, pair):
    middleware.logs = [
        make_log("Sync", 101, log_idx=1, args=["50", "60"]),
        make_log("PairMint", 101, log_idx=0, args=["ak_sender", "10", "20"]),
    ]

    importer.import_history()

    entries = history(db_manager, pair.id)
    assert [e.event_type for e in entries[1:]] == [EventType.PAIR_MINT, EventType.SYNC]
    assert (entries[2].delta_reserve0, entries[2].delta_reserve1) == (40, 40)


def test_prices_are_captured(importer, db_manager, middleware, fiat_price_client, pair):
    middleware.logs = [make_log("PairMint", 101, args=["ak_sender", str(10 * 10**18), str(40 * 10**18)])]

    importer.import_history()

    mint = history(db_manager, pair.id)[1]
    assert mint.fiat_price == Decimal("0.05")
    assert mint.token0_native_price == 1
    assert mint.token1_native_price == Decimal("0.25")
    fiat_price_client.get_fiat_price.assert_called_once_with(101_000)


def test_prices_unknown_without_wrapped_native_token(importer, db_manager, middleware, other_pair):
    middleware.logs = [make_log("PairMint", 101, args=["ak_sender", "10", "40"], contract_id=OTHER_PAIR_ADDRESS)]

    importer.import_history()

    mint = history(db_manager, other_pair.id)[-1]
    assert mint.token0_native_price is None
    assert mint.token1_native_price is None


def test_failed_log_is_recorded_and_logged(importer, db_manager, middleware, pair, caplog):
    middleware.logs = [
        make_log("PairMint", 101, args=["ak_sender", "100", "100"]),
        make_log("SwapTokens", 102, data="x|0|0|1"),
    ]

    with caplog.at_level(logging.INFO):
        summary = importer.import_history()

    assert summary.synced_logs == 1
    assert summary.failed_logs == 1

    records = error_records(db_manager)
    assert len(records) == 1
    assert (records[0].micro_block_hash, records[0].transaction_hash, records[0].log_index) == ("mh_102", "th_102", 0)
    assert records[0].error.startswith("DecodeError: ")
    assert records[0].times_occurred == 1

    message = next(r.getMessage() for r in caplog.records if r.getMessage().startswith("Skipped log. "))
    details = msgspec.json.decode(message[len("Skipped log. "):])
    assert details["pairId"] == pair.id
    assert details["microBlockHash"] == "mh_102"
    assert details["transactionHash"] == "th_102"
    assert details["logIndex"] == 0
    assert details["error"].startswith("DecodeError: Invalid amount")
    assert "Completed sync for pair" in caplog.text
    assert "Synced 1 log(s)." in caplog.text


def test_log_in_cooldown_is_skipped(importer, db_manager, middleware, pair, caplog):
    middleware.logs = [make_log("PairMint", 101, args=["ak_sender", "100", "100"])]
    identity = ErrorIdentity.for_log(pair.id, "mh_101", "th_101", 0)
    with db_manager.get_transaction() as session:
        db_manager.get_liquidity_history_error_repo().upsert(session, identity, "DecodeError: earlier")

    with caplog.at_level(logging.INFO):
        summary = importer.import_history()

    assert summary.skipped_logs == 1
    assert summary.synced_logs == 0
    assert ("Skipped log with block hash mh_101 tx hash th_101 and log index 0 due to recent error."
            in caplog.text)


def test_log_is_retried_after_cooldown(db_manager, middleware, fiat_price_client, config, pair):
    middleware.logs = [make_log("PairMint", 101, args=["ak_sender", "100", "100"])]
    identity = ErrorIdentity.for_log(pair.id, "mh_101", "th_101", 0)
    with db_manager.get_transaction() as session:
        db_manager.get_liquidity_history_error_repo().upsert(session, identity, "DecodeError: earlier")

    later = LiquidityHistoryImporter(
        db_manager, middleware, fiat_price_client, config,
        now=lambda: utc_now() + timedelta(hours=config.importer.error_cooldown_hours, minutes=1),
    )
    summary = later.import_history()

    assert summary.synced_logs == 1
    assert history(db_manager, pair.id)[-1].reserve0 == 100


def test_pair_failure_is_recorded_and_skipped(db_manager, middleware, fiat_price_client, config, pair, caplog):
    def failing_fetch(address, condition):
        raise MiddlewareError("Middleware request failed with status 503", status_code=503)

    middleware.get_contract_logs_until_condition = failing_fetch
    importer = LiquidityHistoryImporter(db_manager, middleware, fiat_price_client, config)

    with caplog.at_level(logging.INFO):
        first = importer.import_history()
        second = importer.import_history()

    assert first.failed_pairs == 1
    assert second.skipped_pairs == 1
    assert f"Skipped pair {pair.id} due to recent error." in caplog.text

    records = error_records(db_manager)
    assert len(records) == 1
    assert records[0].log_index == -1
    assert records[0].micro_block_hash == ""
    assert records[0].error == "MiddlewareError: Middleware request failed with status 503"

    message = next(r.getMessage() for r in caplog.records if r.getMessage().startswith("Skipped pair. "))
    assert msgspec.json.decode(message[len("Skipped pair. "):])["logIndex"] == -1

    later = LiquidityHistoryImporter(
        db_manager, middleware, fiat_price_client, config,
        now=lambda: utc_now() + timedelta(hours=7),
    )
    third = later.import_history()

    assert third.failed_pairs == 1
    assert error_records(db_manager)[0].times_occurred == 2


def test_pair_failure_does_not_stop_other_pairs(db_manager, middleware, fiat_price_client, config, pair, other_pair):
    original_fetch = middleware.get_contract_logs_until_condition

    def fetch(address, condition):
        if address == pair.address:
            raise MiddlewareError("unreachable")
        return original_fetch(address, condition)

    middleware.logs = [make_log("PairMint", 101, args=["ak_sender", "1", "1"], contract_id=OTHER_PAIR_ADDRESS)]
    middleware.get_contract_logs_until_condition = fetch
    importer = LiquidityHistoryImporter(db_manager, middleware, fiat_price_client, config)

    summary = importer.import_history()

    assert summary.pairs == 2
    assert summary.failed_pairs == 1
    assert summary.synced_logs == 1
    assert len(history(db_manager, other_pair.id)) == 2


def test_pair_listing_failure_is_logged_not_raised(importer, middleware, caplog):
    importer.pair_repo.list_all = MagicMock(side_effect=RuntimeError("db down"))

    with caplog.at_level(logging.INFO):
        summary = importer.import_history()

    assert summary.pairs == 0
    assert summary.synced_logs == 0
    assert "Could not load pairs" in caplog.text
    assert "Finished liquidity info history sync" not in caplog.text
