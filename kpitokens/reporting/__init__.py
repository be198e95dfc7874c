from .settlement import payouts_frame, settlement_summary, write_settlement_report

__all__ = [
    "payouts_frame",
    "settlement_summary",
    "write_settlement_report",
]
