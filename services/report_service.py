# services/report_service.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from schemas.dashboard import ReportLine, WeeklyReport
from services.engine.ports import HoldingsStore
from services.engine.profit import present, profit_percent


def build_weekly_report(store: HoldingsStore) -> WeeklyReport:
    """Snapshot of every stored lot, valued at its last recorded price (no live calls)."""
    lots = store.find_all()
    now = datetime.now(timezone.utc)

    if not lots:
        return WeeklyReport(
            generated_at=now,
            total_assets=0,
            total_value=Decimal("0.00"),
            lines=[],
            text="Weekly Asset Report\n\nNo assets found.",
        )

    lines: List[ReportLine] = []
    total_value = Decimal(0)
    total_pct = Decimal(0)
    for h in lots:
        price = h.current_price if h.current_price is not None else h.buy_price
        value = price * h.quantity
        pct = profit_percent(h.buy_price, price)
        total_value += value
        total_pct += pct
        lines.append(ReportLine(
            symbol=h.symbol,
            asset_type=h.asset_class.value,
            current_value=present(value),
            profit_percent=present(pct),
        ))

    avg_pct = present(total_pct / len(lots))

    text_rows = ["WEEKLY ASSET REPORT", "", f"Total Assets: {len(lots)}", "", "Assets:"]
    for line in lines:
        text_rows.append(
            f"- {line.symbol} ({line.asset_type}) -> {line.current_value} ({line.profit_percent}%)"
        )
    text_rows += ["", "SUMMARY:", f"Total Value: {present(total_value)}", f"Avg Profit: {avg_pct}%"]

    return WeeklyReport(
        generated_at=now,
        total_assets=len(lots),
        total_value=present(total_value),
        average_profit_percent=avg_pct,
        lines=lines,
        text="\n".join(text_rows),
    )
