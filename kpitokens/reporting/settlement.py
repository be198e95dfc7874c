from pathlib import Path
from typing import Any, Dict
from decimal import Decimal

import pandas as pd

from kpitokens.simulation import SettlementResult


PAYOUT_COLUMNS = ["holder", "address", "claim_balance", "payout", "share_pct", "payout_units"]


# =====================================================
# SETTLEMENT REPORT
# =====================================================

def _units(amount: int, decimals: int) -> float:
    return float(Decimal(amount) / (Decimal(10) ** decimals))


def payouts_frame(result: SettlementResult) -> pd.DataFrame:
    """One row per redemption, in redemption order."""
    rows = [
        {
            "holder": p.holder,
            "address": p.address,
            "claim_balance": p.claim_balance,
            "payout": p.payout,
            "share_pct": float(Decimal(p.claim_balance) * 100 / Decimal(result.total_supply)),
            "payout_units": _units(p.payout, result.collateral_decimals),
        }
        for p in result.payouts
    ]
    df = pd.DataFrame(rows, columns=PAYOUT_COLUMNS)

    # raw amounts are uint256-sized
    return df.astype({"claim_balance": object, "payout": object})


def settlement_summary(result: SettlementResult) -> Dict[str, Any]:
    total_paid = sum(p.payout for p in result.payouts)
    kpi_range = result.higher_bound - result.lower_bound

    return {
        "name": result.name,
        "kpi_token": result.kpi_token,
        "boolean": result.lower_bound == 0 and result.higher_bound == 1,
        "progress": result.progress,
        "range": kpi_range,
        "progress_pct": round(100 * result.progress / kpi_range, 2),
        "gross_collateral": result.gross_amount,
        "fee": result.fee_amount,
        "net_collateral": result.net_amount,
        "creator_share": result.creator_share,
        "holder_share": result.holder_share,
        "redeemed": total_paid,
        "redemptions": len(result.payouts),
        "remaining_collateral": result.remaining_collateral,
        "remaining_supply": result.remaining_supply,
        "conserved": result.fee_amount + result.creator_share + total_paid
        + result.remaining_collateral == result.gross_amount,
    }


def write_settlement_report(result: SettlementResult, output_dir) -> Dict[str, Path]:
    """
    Write the Markdown settlement report and payouts.csv into output_dir.

    Returns:
        {"markdown": <path>, "csv": <path>}
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    summary = settlement_summary(result)
    frame = payouts_frame(result)

    csv_path = output_dir / "payouts.csv"
    frame.to_csv(csv_path, index=False)

    report_path = output_dir / "Settlement_Report.md"
    with open(report_path, "w", encoding="utf-8") as f:
        _write_header(f, result)
        _write_summary(f, result, summary)
        _write_payouts(f, result, frame)
        _write_events(f, result)

    return {"markdown": report_path, "csv": csv_path}


# -------------------------------------------------
# SECTIONS
# -------------------------------------------------
def _write_header(f, result: SettlementResult):
    f.write(f"# Settlement Report: {result.name}\n\n")
    f.write(f"**KPI token:** `{result.kpi_token}`\n\n")
    f.write(f"**Creator:** `{result.creator}`\n\n")
    f.write("---\n\n")


def _write_summary(f, result: SettlementResult, summary: Dict[str, Any]):
    decimals = result.collateral_decimals
    symbol = result.collateral_symbol

    f.write("## Outcome\n\n")
    if summary["boolean"]:
        outcome = "reached" if result.progress == 1 else "not reached"
        f.write(f"- KPI {outcome}\n")
    else:
        f.write(
            f"- Progress {summary['progress']} / {summary['range']} "
            f"({summary['progress_pct']}%)\n"
        )

    f.write("\n## Collateral\n\n")
    f.write("| Item | Amount |\n")
    f.write("| :--- | ---: |\n")
    for label, key in [
        ("Deposited", "gross_collateral"),
        ("Protocol fee", "fee"),
        ("Escrowed", "net_collateral"),
        ("Returned to creator", "creator_share"),
        ("Reserved for holders", "holder_share"),
        ("Redeemed", "redeemed"),
        ("Left in escrow", "remaining_collateral"),
    ]:
        f.write(f"| {label} | {_units(summary[key], decimals):,.6f} {symbol} |\n")

    status = "balanced" if summary["conserved"] else "MISMATCH"
    f.write(f"\n**Conservation check:** {status}\n\n")


def _write_payouts(f, result: SettlementResult, frame: pd.DataFrame):
    f.write("## Redemptions\n\n")
    if frame.empty:
        f.write("_No redemptions._\n\n")
        return

    f.write(f"| Holder | Share of supply | Payout ({result.collateral_symbol}) |\n")
    f.write("| :--- | ---: | ---: |\n")
    for row in frame.itertuples(index=False):
        f.write(f"| {row.holder} | {row.share_pct:.2f}% | {row.payout_units:,.6f} |\n")
    f.write("\n")


def _write_events(f, result: SettlementResult):
    f.write("## Event Log\n\n")
    counts = pd.Series([e.name for e in result.events], dtype=object).value_counts()
    for name, count in counts.sort_index().items():
        f.write(f"- {name}: {count}\n")
    f.write("\n---\n\n_Generated by kpitokens._\n")
