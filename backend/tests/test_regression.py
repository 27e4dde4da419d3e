"""Theil-Sen 보증금-월세 회귀 테스트"""

from __future__ import annotations

import pytest
from conftest import linear_market, make_tx

from wolse.engine.regression import fit_theil_sen, predict


def test_monotonic_data_has_negative_slope() -> None:
    txs = [make_tx(d, r) for d, r in [(1_000, 120), (2_500, 104), (3_000, 101), (5_000, 82), (8_000, 51)]]
    fit = fit_theil_sen(txs)
    assert not fit.degenerate
    assert fit.slope < 0
    assert fit.pair_count == 10


def test_exact_line_prediction() -> None:
    fit = fit_theil_sen(linear_market(6))
    # 월세 = 105만원 - 보증금 × 0.005
    assert fit.slope == pytest.approx(-0.005)
    assert predict(fit, 30_000_000) == pytest.approx(900_000)


def test_resistant_to_single_outlier() -> None:
    txs = linear_market(6) + [make_tx(3_500, 300)]
    fit = fit_theil_sen(txs)
    assert fit.slope == pytest.approx(-0.005)


def test_degenerate_falls_back_to_mean() -> None:
    single = fit_theil_sen([make_tx(1_000, 100)])
    assert single.degenerate
    assert predict(single, 50_000_000) == 1_000_000

    # 보증금 차이가 모두 100만원 이하
    close = fit_theil_sen([make_tx(1_000, 100), make_tx(1_050, 90), make_tx(1_100, 80)])
    assert close.degenerate
    assert predict(close, 10_000_000) == pytest.approx(900_000)


def test_negative_prediction_falls_back_to_mean() -> None:
    fit = fit_theil_sen(linear_market(6))
    # 보증금 5억이면 직선 예측값이 음수
    assert predict(fit, 500_000_000) == pytest.approx(fit.mean_rent)
    assert fit.mean_rent == pytest.approx(875_000)
