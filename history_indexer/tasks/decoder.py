# history_indexer/tasks/decoder.py

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List

from ..core.errors import DecodeError
from ..types import ContractLog, EventType, LedgerEvent, PairBurn, PairMint, SwapTokens, Sync


def _amount(value: Any, event_name: str) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise DecodeError(f"Invalid amount {value!r} in {event_name} log", event_name) from e

    if not amount.is_finite() or amount != amount.to_integral_value() or amount < 0:
        raise DecodeError(f"Invalid amount {value!r} in {event_name} log", event_name)
    return amount


def _args(log: ContractLog, count: int) -> List[Any]:
    if len(log.args) < count:
        raise DecodeError(
            f"{log.event_name} log has {len(log.args)} args, expected {count}",
            log.event_name,
        )
    return log.args


def _data_fields(log: ContractLog, count: int) -> List[str]:
    fields = log.data.split('|') if log.data else []
    if len(fields) != count:
        raise DecodeError(
            f"{log.event_name} log data {log.data!r} has {len(fields)} fields, expected {count}",
            log.event_name,
        )
    return fields


def _decode_pair_mint(log: ContractLog) -> PairMint:
    # args: [sender, amount0, amount1]
    args = _args(log, 3)
    return PairMint(amount0=_amount(args[1], log.event_name), amount1=_amount(args[2], log.event_name))


def _decode_pair_burn(log: ContractLog) -> PairBurn:
    amount0, amount1 = _data_fields(log, 2)
    return PairBurn(amount0=_amount(amount0, log.event_name), amount1=_amount(amount1, log.event_name))


def _decode_swap_tokens(log: ContractLog) -> SwapTokens:
    amount0_in, amount1_in, amount0_out, amount1_out = (
        _amount(field, log.event_name) for field in _data_fields(log, 4)
    )
    return SwapTokens(
        amount0_in=amount0_in,
        amount1_in=amount1_in,
        amount0_out=amount0_out,
        amount1_out=amount1_out,
    )


def _decode_sync(log: ContractLog) -> Sync:
    args = _args(log, 2)
    return Sync(reserve0=_amount(args[0], log.event_name), reserve1=_amount(args[1], log.event_name))


_DECODERS: Dict[str, Callable[[ContractLog], LedgerEvent]] = {
    EventType.PAIR_MINT.value: _decode_pair_mint,
    EventType.PAIR_BURN.value: _decode_pair_burn,
    EventType.SWAP_TOKENS.value: _decode_swap_tokens,
    EventType.SYNC.value: _decode_sync,
}


def decode_log(log: ContractLog) -> LedgerEvent:
    """Decode a pair contract log into the reserve event it describes"""
    decoder = _DECODERS.get(log.event_name)
    if decoder is None:
        raise DecodeError(f"Unknown event {log.event_name!r}", log.event_name)
    return decoder(log)
