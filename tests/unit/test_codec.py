"""Unit tests for callback params encoding."""
from __future__ import annotations

import json

import pytest

from flashlev.codec import decode_params, encode_params
from flashlev.errors import MalformedCallbackParams
from flashlev.models import FlashLoanParams, OpenRequest, OperationKind, UnwindRequest


def _open_params() -> FlashLoanParams:
    return FlashLoanParams(
        kind=OperationKind.OPEN,
        requester="0xOP",
        request=OpenRequest(
            collateral_token="USDC",
            collateral_amount=1000,
            borrow_token="WETH",
            borrow_amount=5,
            swap_instruction=b"\x00\xffroute",
            min_return_amount=7,
        ),
    )


class TestEncode:
    def test_payload_is_self_describing(self) -> None:
        payload = json.loads(encode_params(_open_params()))
        assert payload["kind"] == "open"
        assert payload["requester"] == "0xOP"
        assert payload["request"]["swap_instruction"] == b"\x00\xffroute".hex()

    def test_kind_must_match_request(self) -> None:
        params = FlashLoanParams(
            kind=OperationKind.UNWIND,
            requester="0xOP",
            request=_open_params().request,
        )
        with pytest.raises(TypeError):
            encode_params(params)


class TestDecode:
    def test_open(self) -> None:
        original = _open_params()
        assert decode_params(encode_params(original)) == original

    def test_unwind(self) -> None:
        original = FlashLoanParams(
            kind=OperationKind.UNWIND,
            requester="0xOP",
            request=UnwindRequest(
                collateral_token="USDC",
                collateral_to_withdraw=2394,
                debt_token="WETH",
                debt_amount=11,
                swap_instruction=b"",
                min_return_amount=0,
            ),
        )
        decoded = decode_params(encode_params(original))
        assert decoded.kind is OperationKind.UNWIND
        assert isinstance(decoded.request, UnwindRequest)
        assert decoded == original

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"not json",
            b"[]",
            b'{"kind": "liquidate", "requester": "0x1", "request": {}}',
            b'{"kind": "open", "requester": "0x1"}',
            b'{"kind": "open", "requester": "0x1", "request": {"collateral_token": "A"}}',
            b'{"kind": "open", "requester": "0x1", "request": {"swap_instruction": "zz"}}',
        ],
    )
    def test_malformed(self, data: bytes) -> None:
        with pytest.raises(MalformedCallbackParams):
            decode_params(data)
