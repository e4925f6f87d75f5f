"""Weighted-average cost replay and position valuation."""

from __future__ import annotations

from datetime import date

import pytest

from portfolio_hub.models import PricePoint
from portfolio_hub.positions import compute_positions, replay_holding


def test_average_cost_scenario_buy_buy_sell_sell(make_tx):
    txs = [make_tx("ACME", "BUY", 10, 100, date(2024, 1, 1))]
    holding = replay_holding(txs)
    assert holding.quantity == 10
    assert holding.average_cost == pytest.approx(100)
    assert holding.held_since == date(2024, 1, 1)

    txs.append(make_tx("ACME", "BUY", 10, 120, date(2024, 1, 2)))
    holding = replay_holding(txs)
    assert holding.quantity == 20
    assert holding.average_cost == pytest.approx(110)

    txs.append(make_tx("ACME", "SELL", 15, 130, date(2024, 1, 3)))
    holding = replay_holding(txs)
    assert holding.quantity == 5
    assert holding.average_cost == pytest.approx(110)

    txs.append(make_tx("ACME", "SELL", 5, 130, date(2024, 1, 4)))
    holding = replay_holding(txs)
    assert holding.quantity == 0
    assert holding.average_cost == 0
    assert holding.held_since is None

    assert compute_positions(txs, [PricePoint("ACME", date(2024, 1, 4), 130.0)]) == []


def test_fees_are_capitalised_into_average_cost(make_tx):
    holding = replay_holding([make_tx("ACME", "BUY", 4, 25, fees=2)])
    assert holding.average_cost == pytest.approx(25.5)


def test_reopened_position_starts_fresh_cost_basis(make_tx):
    txs = [
        make_tx("ACME", "BUY", 10, 50, date(2024, 1, 1)),
        make_tx("ACME", "SELL", 12, 80, date(2024, 2, 1)),
        make_tx("ACME", "BUY", 3, 90, date(2024, 3, 1)),
    ]
    holding = replay_holding(txs)
    assert holding.quantity == 3
    assert holding.average_cost == pytest.approx(90)
    assert holding.held_since == date(2024, 3, 1)


def test_quantity_equals_signed_sum_since_last_flat(make_tx):
    txs = [
        make_tx("ACME", "BUY", 5, 10, date(2024, 1, 1)),
        make_tx("ACME", "SELL", 5, 10, date(2024, 1, 2)),
        make_tx("ACME", "BUY", 7, 10, date(2024, 1, 3)),
        make_tx("ACME", "SELL", 2, 10, date(2024, 1, 4)),
        make_tx("ACME", "BUY", 1, 10, date(2024, 1, 5)),
    ]
    assert replay_holding(txs).quantity == 7 - 2 + 1


def test_replay_sorts_by_date_and_keeps_same_day_order(make_tx):
    txs = [
        make_tx("ACME", "SELL", 4, 10, date(2024, 1, 2)),
        make_tx("ACME", "BUY", 4, 10, date(2024, 1, 1)),
        # same day: buy then sell leaves the position flat
        make_tx("ACME", "BUY", 2, 20, date(2024, 1, 3)),
        make_tx("ACME", "SELL", 2, 20, date(2024, 1, 3)),
    ]
    holding = replay_holding(txs)
    assert holding.quantity == 0
    assert holding.held_since is None


def test_positions_valuation_weights_and_ordering(make_tx):
    txs = [
        make_tx("AAA", "BUY", 10, 8, date(2024, 1, 1)),
        make_tx("BBB", "BUY", 2, 100, date(2024, 1, 1)),
    ]
    prices = [
        PricePoint("AAA", date(2024, 1, 1), 8.0),
        PricePoint("AAA", date(2024, 1, 5), 10.0),
        PricePoint("BBB", date(2024, 1, 5), 150.0),
    ]
    positions = compute_positions(txs, prices)

    assert [p.ticker for p in positions] == ["BBB", "AAA"]
    bbb, aaa = positions
    assert bbb.market_value == pytest.approx(300)
    assert bbb.unrealized_pnl_abs == pytest.approx(100)
    assert bbb.unrealized_pnl_pct == pytest.approx(0.5)
    assert aaa.last_price == 10.0
    assert aaa.unrealized_pnl_abs == pytest.approx(20)
    assert aaa.weight == pytest.approx(100 / 400)
    assert sum(p.weight for p in positions) == pytest.approx(1.0)


def test_unpriced_positions_have_zero_value_and_zero_weights(make_tx):
    positions = compute_positions([make_tx("NEW", "BUY", 3, 12)], [])
    assert len(positions) == 1
    position = positions[0]
    assert position.last_price == 0
    assert position.market_value == 0
    assert position.weight == 0
    assert position.unrealized_pnl_abs == pytest.approx(-36)
    assert position.unrealized_pnl_pct == pytest.approx(-1)


def test_zero_cost_position_has_zero_pnl_pct(make_tx):
    positions = compute_positions(
        [make_tx("GIFT", "BUY", 5, 0)],
        [PricePoint("GIFT", date(2024, 1, 1), 4.0)],
    )
    assert positions[0].unrealized_pnl_pct == 0
    assert positions[0].unrealized_pnl_abs == pytest.approx(20)


def test_portfolio_filter_restricts_ledger(make_tx):
    txs = [
        make_tx("AAA", "BUY", 10, 10, portfolio="PEA"),
        make_tx("AAA", "BUY", 5, 10, portfolio="CTO"),
        make_tx("BBB", "BUY", 1, 10, portfolio="CTO"),
    ]
    prices = [PricePoint("AAA", date(2024, 1, 1), 10.0), PricePoint("BBB", date(2024, 1, 1), 10.0)]

    pea = compute_positions(txs, prices, ["PEA"])
    assert [(p.ticker, p.quantity) for p in pea] == [("AAA", 10)]

    combined = compute_positions(txs, prices, [])
    assert {p.ticker: p.quantity for p in combined} == {"AAA": 15, "BBB": 1}


def test_empty_ledger_has_no_positions():
    assert compute_positions([], [PricePoint("AAA", date(2024, 1, 1), 1.0)]) == []
