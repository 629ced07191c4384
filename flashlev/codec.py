"""Encoding of flash-loan callback params.

The payload is self-describing JSON: the operation kind, the requester and
the request bundle. Swap instructions travel hex-encoded.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

from .errors import MalformedCallbackParams
from .models import FlashLoanParams, OpenRequest, OperationKind, UnwindRequest

_REQUEST_TYPES: dict[OperationKind, type] = {
    OperationKind.OPEN: OpenRequest,
    OperationKind.UNWIND: UnwindRequest,
}


def encode_params(params: FlashLoanParams) -> bytes:
    expected = _REQUEST_TYPES[params.kind]
    if not isinstance(params.request, expected):
        raise TypeError(
            f"{params.kind.name} expects {expected.__name__}, "
            f"got {type(params.request).__name__}"
        )

    request = asdict(params.request)
    request["swap_instruction"] = params.request.swap_instruction.hex()
    payload = {
        "kind": params.kind.value,
        "requester": params.requester,
        "request": request,
    }
    return json.dumps(payload, sort_keys=True).encode()


def decode_params(data: bytes) -> FlashLoanParams:
    """Decode callback params, raising MalformedCallbackParams on bad input."""
    try:
        payload: dict[str, Any] = json.loads(data)
        kind = OperationKind(payload["kind"])
        requester = str(payload["requester"])
        fields = dict(payload["request"])
        fields["swap_instruction"] = bytes.fromhex(fields["swap_instruction"])
        request = _REQUEST_TYPES[kind](**fields)
    except (ValueError, KeyError, TypeError) as e:
        raise MalformedCallbackParams(f"Cannot decode callback params: {e}") from e

    return FlashLoanParams(kind=kind, requester=requester, request=request)
