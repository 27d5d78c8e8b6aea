"""
Lot Matching Engine

Matches sell trades against buy lots, one ticker group at a time:
1. Buys on the same day at the same price merge into one lot
2. A sell first consumes whole lots it can cover, in queue order
3. The rest is matched partially against the first open lot, or against the
   nearest later buy (a short sale covered by a subsequent purchase)

The engine only moves quantities; currency conversion is done afterwards by
DealValuation on the LotMatch records it emits.

Trades live in a per-group arena (list) and the buy queue holds arena
indices, so a lot matched several times is always the same record.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from opodatkuvayco.lib.nbu_rates import canonical_date_key
from opodatkuvayco.lib.parsers.report_models import TradeRecord
from opodatkuvayco.lib.utils.logging_config import setup_logger
from opodatkuvayco.modules.tax.grouping import group_by_ticker
from opodatkuvayco.modules.tax.tax_events import LotMatch, LotTrade, OpenLot

logger = setup_logger(__name__)


@dataclass
class MatchResult:
    """Matches and carry-forward lots produced for one or more ticker groups."""

    matches: List[LotMatch] = field(default_factory=list)
    open_lots: List[OpenLot] = field(default_factory=list)

    def extend(self, other: 'MatchResult'):
        self.matches.extend(other.matches)
        self.open_lots.extend(other.open_lots)


class LotMatchingEngine:
    """
    Per-ticker lot matching state machine.

    Groups are independent: no state is shared between tickers, and the
    engine itself keeps no state between calls.
    """

    def __init__(self, date_key: Optional[Callable[[datetime], str]] = None):
        self.date_key = date_key or canonical_date_key

    def match_all(self, trades: Iterable[TradeRecord]) -> MatchResult:
        """Group trades by normalized ticker and match every group."""
        grouped = group_by_ticker(trades)
        logger.debug(f"Matching {len(grouped)} ticker groups")

        result = MatchResult()
        for ticker, arena in grouped.items():
            result.extend(self.match_group(arena))

        logger.debug(
            f"Produced {len(result.matches)} matches, {len(result.open_lots)} open lots"
        )
        return result

    def match_group(self, arena: List[LotTrade]) -> MatchResult:
        """
        Process one ticker's trades in original order.

        Mutates the quantities (and lot commissions) of the arena records.
        """
        buy_queue: List[int] = []
        matches: List[LotMatch] = []

        for index, trade in enumerate(arena):
            if trade.is_buy:
                if trade.quantity > 0:
                    self.handle_buy(arena, buy_queue, index)

            elif trade.is_sell:
                if buy_queue:
                    buy_queue = self.match_sell(arena, buy_queue, index, matches)
                elif self._next_buy(arena, index) is not None:
                    self.match_forward_once(arena, index, matches)
                else:
                    logger.debug(
                        f"Unmatched sell dropped: {trade.raw_ticker} {trade.quantity} "
                        f"on {trade.date.date()} (no prior or later buys)"
                    )

        open_lots = [
            OpenLot(
                ticker=lot.ticker,
                raw_ticker=lot.raw_ticker,
                quantity=lot.quantity,
                price=lot.price,
                commission=lot.commission,
                currency=lot.currency,
                date=lot.date,
            )
            for lot in (arena[i] for i in buy_queue)
            if lot.quantity > 0
        ]

        return MatchResult(matches=matches, open_lots=open_lots)

    def handle_buy(self, arena: List[LotTrade], buy_queue: List[int], index: int):
        """Enqueue a buy, or merge it into a queued lot with the same day and price."""
        buy = arena[index]
        existing = self._find_lot_by_date_and_price(arena, buy_queue, buy)

        if existing is None:
            buy_queue.append(index)
            return

        lot = arena[existing]
        lot.quantity += buy.quantity
        lot.commission += buy.commission
        logger.debug(
            f"Merged buy {buy.ticker} {buy.quantity} @ {buy.price} into lot from position {lot.position}"
        )

        # Quantity now lives on the surviving lot
        buy.quantity = Decimal(0)
        buy.commission = Decimal(0)

    def match_sell(
        self,
        arena: List[LotTrade],
        buy_queue: List[int],
        index: int,
        matches: List[LotMatch]
    ) -> List[int]:
        """
        Match a sell while the buy queue is non-empty.

        Returns the buy queue with lots exhausted by the full-lot pass removed.
        """
        sale = arena[index]
        per_unit_commission = self._per_unit_commission(sale)

        # Full-lot pass: consume every lot the sell can still cover at this point
        for lot_index in buy_queue:
            lot = arena[lot_index]
            if lot.quantity > 0 and lot.quantity <= sale.quantity:
                matches.append(self._match(lot, sale, lot.quantity, per_unit_commission))

        buy_queue = [i for i in buy_queue if arena[i].quantity > 0]

        # Partial/forward pass
        while sale.quantity > 0:
            forward = False
            candidate = next((i for i in buy_queue if arena[i].quantity > 0), None)

            if candidate is None:
                candidate = self._next_buy(arena, index)
                forward = True

            if candidate is None:
                break

            lot = arena[candidate]
            quantity = min(lot.quantity, sale.quantity)
            matches.append(self._match(lot, sale, quantity, per_unit_commission, forward=forward))

        if sale.quantity > 0:
            logger.debug(
                f"Sell {sale.raw_ticker} on {sale.date.date()} left {sale.quantity} unmatched"
            )

        return buy_queue

    def match_forward_once(
        self,
        arena: List[LotTrade],
        index: int,
        matches: List[LotMatch]
    ):
        """
        Match a sell against the nearest later buy when no lots are queued.

        Only one match is attempted even if the sell is not fully covered.
        """
        sale = arena[index]
        per_unit_commission = self._per_unit_commission(sale)

        lot = arena[self._next_buy(arena, index)]
        quantity = min(lot.quantity, sale.quantity)
        if quantity > 0:
            matches.append(self._match(lot, sale, quantity, per_unit_commission, forward=True))

        if sale.quantity > 0:
            logger.debug(
                f"Short sell {sale.raw_ticker} on {sale.date.date()} left {sale.quantity} "
                f"unmatched after a single forward match"
            )

    def _match(
        self,
        lot: LotTrade,
        sale: LotTrade,
        quantity: Decimal,
        per_unit_commission: Decimal,
        forward: bool = False
    ) -> LotMatch:
        """Pair `quantity` units of a lot with a sale and decrement both."""
        purchase_commission = self._attribute_commission(lot, quantity)
        sale_commission = self._attribute_sale_commission(sale, quantity, per_unit_commission)

        match = LotMatch(
            ticker=lot.ticker,
            quantity=quantity,
            purchase_price=lot.price,
            purchase_commission=purchase_commission,
            purchase_currency=lot.currency,
            purchase_date=lot.date,
            sale_price=sale.price,
            sale_commission=sale_commission,
            sale_currency=sale.currency,
            sale_date=sale.date,
            forward=forward,
        )

        lot.quantity -= quantity
        lot.commission -= purchase_commission
        sale.quantity -= quantity
        sale.commission -= sale_commission

        logger.debug(
            f"Matched {quantity} {lot.ticker}: bought {lot.date.date()} @ {lot.price}, "
            f"sold {sale.date.date()} @ {sale.price}{' (forward)' if forward else ''}"
        )
        return match

    @staticmethod
    def _attribute_commission(lot: LotTrade, quantity: Decimal) -> Decimal:
        """Share of the lot's remaining commission carried by `quantity` units."""
        if quantity >= lot.quantity:
            return lot.commission
        return lot.commission * quantity / lot.quantity

    @staticmethod
    def _attribute_sale_commission(
        sale: LotTrade,
        quantity: Decimal,
        per_unit_commission: Decimal
    ) -> Decimal:
        """Flat per-unit share; the match that closes the sell takes what is left."""
        if quantity >= sale.quantity:
            return sale.commission
        return per_unit_commission * quantity

    @staticmethod
    def _per_unit_commission(sale: LotTrade) -> Decimal:
        if sale.quantity <= 0:
            return Decimal(0)
        return sale.commission / sale.quantity

    @staticmethod
    def _next_buy(arena: List[LotTrade], index: int) -> Optional[int]:
        """Arena index of the nearest later buy with quantity left."""
        return next(
            (
                position for position in range(index + 1, len(arena))
                if arena[position].is_buy and arena[position].quantity > 0
            ),
            None
        )

    def _find_lot_by_date_and_price(
        self,
        arena: List[LotTrade],
        buy_queue: List[int],
        buy: LotTrade
    ) -> Optional[int]:
        buy_key = self.date_key(buy.date)
        return next(
            (
                lot_index for lot_index in buy_queue
                if self.date_key(arena[lot_index].date) == buy_key
                and arena[lot_index].price == buy.price
            ),
            None
        )


def match_trades(
    trades: Iterable[TradeRecord],
    date_key: Optional[Callable[[datetime], str]] = None
) -> MatchResult:
    """Convenience wrapper: match all trades with a fresh engine."""
    return LotMatchingEngine(date_key).match_all(trades)
