import copy

import pytest

from kpitokens.config.defaults import DEFAULT_SCENARIO
from kpitokens.reporting.settlement import (
    PAYOUT_COLUMNS,
    payouts_frame,
    settlement_summary,
    write_settlement_report,
)
from kpitokens.simulation import run_scenario


@pytest.fixture
def result():
    scenario = copy.deepcopy(DEFAULT_SCENARIO)
    scenario.update({
        "start_timestamp": 1_700_000_000,
        "bounds": {"lower": 0, "higher": 100},
        "answer": 75,
        "holders": {"alice": 50, "bob": 25},
    })
    return run_scenario(scenario)


def test_payouts_frame(result):
    df = payouts_frame(result)

    assert list(df.columns) == PAYOUT_COLUMNS
    assert list(df["holder"]) == ["alice", "bob", "creator"]
    assert list(df["share_pct"]) == [50.0, 25.0, 25.0]
    assert sum(df["payout"]) == result.holder_share


def test_summary_is_conserved(result):
    summary = settlement_summary(result)

    assert summary["boolean"] is False
    assert summary["progress"] == 75
    assert summary["progress_pct"] == 75.0
    assert summary["redemptions"] == 3
    assert summary["conserved"] is True
    assert summary["fee"] + summary["net_collateral"] == summary["gross_collateral"]


def test_report_files(result, tmp_path):
    paths = write_settlement_report(result, tmp_path / "run")

    markdown = paths["markdown"].read_text(encoding="utf-8")
    assert "# Settlement Report" in markdown
    assert "Progress 75 / 100" in markdown
    assert "**Conservation check:** balanced" in markdown
    assert "| alice | 50.00% |" in markdown
    assert "KpiTokenCreated: 1" in markdown

    csv = paths["csv"].read_text(encoding="utf-8").splitlines()
    assert csv[0] == ",".join(PAYOUT_COLUMNS)
    assert len(csv) == 4
