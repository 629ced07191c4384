"""In-memory swap router executing pre-built instructions from its own inventory."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass

from ..constants import BASIS_POINTS
from ..interfaces.price_oracle import PriceOracle
from ..leverage import formulas
from .ledger import InMemoryLedger, TokenError

logger = logging.getLogger(__name__)


class RouterError(Exception):
    pass


@dataclass(frozen=True)
class SwapInstruction:
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


def build_swap_instruction(
    token_in: str, token_out: str, amount_in: int, amount_out: int
) -> bytes:
    """Encode an instruction the way an off-chain quoting service would."""
    instruction = SwapInstruction(token_in, token_out, amount_in, amount_out)
    return json.dumps(asdict(instruction), sort_keys=True).encode()


def parse_swap_instruction(data: bytes) -> SwapInstruction:
    try:
        return SwapInstruction(**json.loads(data))
    except (ValueError, TypeError) as e:
        raise RouterError(f"Malformed swap instruction: {e}") from e


class SimulatedSwapRouter:
    """Fills instructions at the quoted price.

    The router pulls ``amount_in`` from the caller by allowance and pays
    ``amount_out`` from the inventory it holds in the ledger. With
    ``reports_amounts`` it returns ``(amount_out, amount_in_used)``.
    """

    def __init__(
        self,
        address: str,
        ledger: InMemoryLedger,
        oracle: PriceOracle,
        fee_bps: int = 30,
        reports_amounts: bool = True,
    ) -> None:
        if not 0 <= fee_bps < BASIS_POINTS:
            raise ValueError(f"Invalid router fee: {fee_bps}")
        self._address = address
        self._ledger = ledger
        self._oracle = oracle
        self.fee_bps = fee_bps
        self.reports_amounts = reports_amounts

    @property
    def address(self) -> str:
        return self._address

    def quote(self, token_in: str, token_out: str, amount_in: int) -> int:
        """Output for ``amount_in`` at oracle prices, less the router fee."""
        gross = formulas.convert(
            amount_in,
            self._oracle.get_price(token_in),
            self._ledger.decimals(token_in),
            self._oracle.get_price(token_out),
            self._ledger.decimals(token_out),
        )
        return gross - formulas.apply_fee(gross, self.fee_bps)

    def build_quoted_instruction(self, token_in: str, token_out: str, amount_in: int) -> bytes:
        return build_swap_instruction(
            token_in, token_out, amount_in, self.quote(token_in, token_out, amount_in)
        )

    def swap(self, instruction: bytes, *, sender: str) -> tuple[int, int] | None:
        parsed = parse_swap_instruction(instruction)
        if parsed.amount_in <= 0:
            raise RouterError("Swap input must be positive")

        try:
            self._ledger.transfer_from(
                parsed.token_in, self._address, sender, self._address, parsed.amount_in
            )
            self._ledger.transfer(parsed.token_out, self._address, sender, parsed.amount_out)
        except TokenError as e:
            raise RouterError(f"Swap failed: {e}") from e

        logger.debug(
            "swap %d %s -> %d %s for %s",
            parsed.amount_in,
            parsed.token_in,
            parsed.amount_out,
            parsed.token_out,
            sender,
        )
        if self.reports_amounts:
            return parsed.amount_out, parsed.amount_in
        return None
