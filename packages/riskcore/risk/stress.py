"""
Stress Testing Module

Market-drop scenarios propagated to positions through a simplified beta
(asset volatility / reference market volatility).  This is a linear
sensitivity approximation: no correlation or second-order effects.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

import structlog

from riskcore.config import RiskSettings

from .models import AssetSeries, PortfolioPosition, StressImpact, StressScenarioResult

logger = structlog.get_logger(__name__)


# Market shock scenarios: key -> name, description, market_drop (fraction)
STRESS_SCENARIOS: Dict[str, Dict] = {
    'minor_correction': {
        'name': 'Minor Correction',
        'description': 'Typical monthly drop',
        'market_drop': -0.05,
    },
    'moderate_correction': {
        'name': 'Moderate Correction',
        'description': 'Quarterly correction',
        'market_drop': -0.10,
    },
    'market_crash': {
        'name': 'Market Crash',
        'description': 'COVID-19 type crisis',
        'market_drop': -0.20,
    },
    'systemic_crisis': {
        'name': 'Systemic Crisis',
        'description': '2008-type crisis',
        'market_drop': -0.40,
    },
}

TOP_IMPACTS = 3


def stress_position(
    position: PortfolioPosition,
    market_drop: float,
    reference_vol: float = 15.0,
) -> Dict:
    """Shock a single position.

    beta = volatility / reference_vol, drop = market_drop · beta,
    loss = recommended_capital · drop (negative for losses).

    Returns:
        Dict with ticker, beta, drop and loss as floats
    """
    if reference_vol <= 0:
        raise ValueError(f"Reference volatility must be positive, got {reference_vol}")

    beta = position.volatility / reference_vol
    drop = market_drop * beta
    return {
        'ticker': position.ticker,
        'beta': beta,
        'drop': drop,
        'loss': position.recommended_capital * drop,
    }


def stress_scenario(
    positions: Sequence[PortfolioPosition],
    scenario: Mapping,
    total_capital: float,
    reference_vol: float = 15.0,
) -> StressScenarioResult:
    """Apply one scenario to every position and summarise the damage."""
    impacts = [
        stress_position(p, scenario['market_drop'], reference_vol)
        for p in positions
    ]
    total_loss = sum(i['loss'] for i in impacts)

    # Most negative losses first
    worst = sorted(impacts, key=lambda i: i['loss'])[:TOP_IMPACTS]
    loss_pct = (total_loss / total_capital * 100) if total_capital else 0.0

    return StressScenarioResult(
        scenario=scenario['name'],
        description=scenario.get('description', ''),
        market_drop=f"{scenario['market_drop'] * 100:.0f}%",
        estimated_loss=f"{abs(total_loss):.2f}",
        loss_pct=f"{loss_pct:.2f}%",
        remaining_capital=f"{total_capital + total_loss:.2f}",
        top_impacts=[
            StressImpact(
                ticker=i['ticker'],
                impact=f"{i['drop'] * 100:.1f}%",
                loss=f"{i['loss']:.2f}",
            )
            for i in worst
        ],
    )


def run_stress_test(
    positions: Sequence[AssetSeries],
    total_capital: float,
    scenarios: Optional[Mapping[str, Mapping]] = None,
    settings: Optional[RiskSettings] = None,
) -> List[StressScenarioResult]:
    """Run every scenario against the portfolio.

    Args:
        positions: Allocated positions (volatility in %, recommended_capital);
            bare AssetSeries use the position defaults
        total_capital: Portfolio value used for loss % and remaining capital
        scenarios: Scenario table, defaults to STRESS_SCENARIOS
        settings: Engine configuration (defaults from environment)

    Returns:
        One StressScenarioResult per scenario, in table order
    """
    settings = settings or RiskSettings()
    scenarios = STRESS_SCENARIOS if scenarios is None else scenarios
    positions = [PortfolioPosition.from_series(p) for p in positions]

    results = [
        stress_scenario(positions, scenario, total_capital, settings.REFERENCE_MARKET_VOL)
        for scenario in scenarios.values()
    ]

    logger.info(
        "run_stress_test: scenarios evaluated",
        num_scenarios=len(results),
        num_positions=len(positions),
    )
    return results
