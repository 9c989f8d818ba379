"""Plain-text rendering of a market snapshot."""

from __future__ import annotations

from typing import List

from .models import STRATEGY_META, MarketSnapshot, StrategyPick


def _format_price(price) -> str:
    if price is None:
        return "n/a"
    return f"Rs {price:,.2f}"


def _render_pick(rank: int, pick: StrategyPick) -> List[str]:
    lines = [f"{rank}. {pick.symbol} ({pick.name}) @ {_format_price(pick.price)}"]
    if pick.metrics:
        lines.append("   " + " | ".join(f"{metric.label}: {metric.value}" for metric in pick.metrics))
    for reason in pick.rationale:
        lines.append(f"   - {reason}")
    return lines


def render_snapshot(snapshot: MarketSnapshot) -> str:
    """Render every strategy's picks as a readable console report."""
    as_of = snapshot.as_of.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    lines: List[str] = [
        f"Market snapshot as of {as_of}",
        f"Coverage: {snapshot.coverage_count}/{snapshot.universe_size} instruments",
    ]

    for strategy, picks in snapshot.picks.items():
        meta = STRATEGY_META[strategy]
        lines.append("")
        lines.append(f"[{meta['title']}] {meta['description']}")
        if not picks:
            lines.append("No instruments qualified this run.")
            continue
        for rank, pick in enumerate(picks, start=1):
            lines.extend(_render_pick(rank, pick))

    return "\n".join(lines)
