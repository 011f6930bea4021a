# tests/test_repositories.py

from datetime import timedelta
from decimal import Decimal

from history_indexer.database.base import utc_now
from history_indexer.types import ErrorIdentity, EventType, LogPosition

from conftest import make_entry


def test_upsert_is_idempotent_by_identity(db_manager, pair):
    repo = db_manager.get_liquidity_history_repo()
    entry = make_entry(pair.id, 101, 10, 20, 10, 20, event_type=EventType.PAIR_MINT)

    with db_manager.get_transaction() as session:
        first = repo.upsert(session, entry)
        first_id = first.id
    with db_manager.get_transaction() as session:
        second = repo.upsert(session, entry)
        second_id = second.id

    with db_manager.get_session() as session:
        assert len(repo.list_all(session)) == 1
    assert first_id == second_id


def test_upsert_overwrites_values(db_manager, pair, insert_entries):
    repo = db_manager.get_liquidity_history_repo()
    insert_entries(make_entry(pair.id, 101, 10, 20))
    insert_entries(make_entry(pair.id, 101, 11, 21, fiat_price="0.07"))

    with db_manager.get_session() as session:
        latest = repo.get_latest_entry(session, pair.id)

    assert (latest.reserve0, latest.reserve1) == (11, 21)
    assert latest.fiat_price == Decimal("0.07")


def test_decimals_keep_full_precision(db_manager, pair, insert_entries):
    repo = db_manager.get_liquidity_history_repo()
    big = Decimal(2**255 + 1)
    insert_entries(make_entry(pair.id, 101, big, 1, token0_price="0.000000000000000000000123456789"))

    with db_manager.get_session() as session:
        latest = repo.get_latest_entry(session, pair.id)

    assert latest.reserve0 == big
    assert latest.token0_native_price == Decimal("1.23456789E-22")


def test_latest_entry_follows_chain_position(db_manager, pair, insert_entries):
    repo = db_manager.get_liquidity_history_repo()
    insert_entries(
        make_entry(pair.id, 102, 3, 3, log_index=0),
        make_entry(pair.id, 102, 4, 4, log_index=1),
        make_entry(pair.id, 101, 1, 1),
    )

    with db_manager.get_session() as session:
        latest = repo.get_latest_entry(session, pair.id)
        since = repo.get_entries_since(session, pair.id, LogPosition(height=101, transaction_index=101, log_index=0))
        missing = repo.get_latest_entry(session, pair.id + 100)

    assert (latest.height, latest.log_index) == (102, 1)
    assert [(e.height, e.log_index) for e in since] == [(102, 0), (102, 1)]
    assert missing is None


def test_delete_from_micro_block_time_counts_rows(db_manager, pair, other_pair, insert_entries):
    repo = db_manager.get_liquidity_history_repo()
    insert_entries(
        make_entry(pair.id, 101, 1, 1, micro_block_time=1_000),
        make_entry(pair.id, 102, 2, 2, micro_block_time=2_000),
        make_entry(other_pair.id, 103, 3, 3, micro_block_time=2_500),
    )

    with db_manager.get_transaction() as session:
        deleted = repo.delete_from_micro_block_time(session, 2_000)

    with db_manager.get_session() as session:
        heights = [e.height for e in repo.get_within_height_sorted(session, 0)]

    assert deleted == 2
    assert heights == [101]


def test_within_height_sorted(db_manager, pair, insert_entries):
    repo = db_manager.get_liquidity_history_repo()
    insert_entries(
        make_entry(pair.id, 105, 1, 1, micro_block_time=5_100, micro_block_hash="mh_b"),
        make_entry(pair.id, 105, 1, 1, micro_block_time=5_000, micro_block_hash="mh_a", log_index=1),
        make_entry(pair.id, 90, 1, 1),
    )

    with db_manager.get_session() as session:
        entries = repo.get_within_height_sorted(session, 100)

    assert [e.micro_block_hash for e in entries] == ["mh_a", "mh_b"]


def test_error_upsert_counts_occurrences(db_manager, pair):
    repo = db_manager.get_liquidity_history_error_repo()
    identity = ErrorIdentity.for_log(pair.id, "mh_1", "th_1", 3)

    with db_manager.get_transaction() as session:
        repo.upsert(session, identity, "DecodeError: first")
    with db_manager.get_transaction() as session:
        repo.upsert(session, identity, "DecodeError: second")
    with db_manager.get_transaction() as session:
        repo.upsert(session, ErrorIdentity.for_pair(pair.id), "MiddlewareError: down")

    with db_manager.get_session() as session:
        record = repo.get_error(session, identity)
        pair_record = repo.get_error(session, ErrorIdentity.for_pair(pair.id))

    assert record.times_occurred == 2
    assert record.error == "DecodeError: second"
    assert pair_record.times_occurred == 1
    assert pair_record.log_index == -1


def test_error_within_hours(db_manager, pair):
    repo = db_manager.get_liquidity_history_error_repo()
    identity = ErrorIdentity.for_pair(pair.id)

    with db_manager.get_transaction() as session:
        repo.upsert(session, identity, "MiddlewareError: down")

    with db_manager.get_session() as session:
        recent = repo.get_error_within_hours(session, identity, 6)
        expired = repo.get_error_within_hours(session, identity, 6, now=utc_now() + timedelta(hours=7))
        other = repo.get_error_within_hours(session, ErrorIdentity.for_log(pair.id, "mh", "th", 0), 6)

    assert recent is not None
    assert expired is None
    assert other is None


def test_error_identity_kinds():
    assert ErrorIdentity.for_pair(1).is_pair_level
    assert not ErrorIdentity.for_log(1, "mh", "th", 0).is_pair_level
