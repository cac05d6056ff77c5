"""Risk analytics API endpoints.

Provides REST endpoints for the full risk report and its sections: portfolio
VaR, CVaR, correlation analysis and stress testing.  Computation runs in a
worker thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from riskcore.config import get_settings
from riskcore.risk.models import PortfolioPosition
from riskcore.risk.report import (
    calculate_correlation_matrix,
    calculate_portfolio_cvar,
    calculate_portfolio_var,
    compute_risk_report,
)
from riskcore.risk.stress import run_stress_test

logger = structlog.get_logger()

router = APIRouter(prefix="/risk", tags=["risk"])


class RiskRequest(BaseModel):
    """Weighted basket with price histories."""

    positions: list[PortfolioPosition] = Field(default_factory=list)
    total_capital: float = 10000
    confidence: float = 0.95


def _validate_params(request: RiskRequest) -> None:
    """Validate common risk request parameters."""
    if not 0 < request.confidence < 1:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid confidence: {request.confidence}. Must be between 0 and 1.",
        )
    if request.total_capital < 0:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid total_capital: {request.total_capital}. Must not be negative.",
        )


@router.post("/report")
async def risk_report(request: RiskRequest) -> dict[str, Any]:
    """Return the full risk report.

    Data problems still produce a 200 with a zeroed report; ``error`` and
    ``error_kind`` say what went wrong.
    """
    _validate_params(request)
    settings = get_settings()

    try:
        logger.info(
            "risk_report_request",
            num_positions=len(request.positions),
            confidence=request.confidence,
        )
        result = await asyncio.to_thread(
            compute_risk_report,
            request.positions,
            request.total_capital,
            request.confidence,
            settings,
        )

    except Exception as e:
        logger.exception("risk_report_failed", num_positions=len(request.positions))
        raise HTTPException(
            status_code=500,
            detail=f"Risk computation failed: {str(e)}",
        )

    return {
        **result.report.model_dump(),
        "error_kind": None if result.ok else result.kind.value,
    }


@router.post("/var")
async def portfolio_var(request: RiskRequest) -> dict[str, Any]:
    """Return parametric portfolio VaR with diversification breakdown."""
    _validate_params(request)
    settings = get_settings()

    try:
        logger.info("portfolio_var_request", num_positions=len(request.positions))
        summary = await asyncio.to_thread(
            calculate_portfolio_var,
            request.positions,
            request.total_capital,
            request.confidence,
            settings,
        )
        return summary.model_dump()

    except Exception as e:
        logger.exception("portfolio_var_failed", num_positions=len(request.positions))
        raise HTTPException(
            status_code=500,
            detail=f"VaR computation failed: {str(e)}",
        )


@router.post("/cvar")
async def portfolio_cvar(request: RiskRequest) -> dict[str, Any]:
    """Return historical CVaR (expected shortfall)."""
    _validate_params(request)
    settings = get_settings()

    try:
        logger.info("portfolio_cvar_request", num_positions=len(request.positions))
        summary = await asyncio.to_thread(
            calculate_portfolio_cvar,
            request.positions,
            request.total_capital,
            request.confidence,
            settings,
        )
        return summary.model_dump()

    except Exception as e:
        logger.exception("portfolio_cvar_failed", num_positions=len(request.positions))
        raise HTTPException(
            status_code=500,
            detail=f"CVaR computation failed: {str(e)}",
        )


@router.post("/correlation")
async def correlation(request: RiskRequest) -> dict[str, Any]:
    """Return the correlation matrix with singularities, stats and clusters."""
    settings = get_settings()

    try:
        logger.info("correlation_request", num_positions=len(request.positions))
        data = await asyncio.to_thread(
            calculate_correlation_matrix,
            request.positions,
            settings,
        )
        return data.model_dump()

    except Exception as e:
        logger.exception("correlation_failed", num_positions=len(request.positions))
        raise HTTPException(
            status_code=500,
            detail=f"Correlation computation failed: {str(e)}",
        )


@router.post("/stress")
async def stress_tests(request: RiskRequest) -> list[dict[str, Any]]:
    """Return all stress scenario results."""
    _validate_params(request)
    settings = get_settings()

    try:
        logger.info("stress_test_request", num_positions=len(request.positions))
        results = await asyncio.to_thread(
            run_stress_test,
            request.positions,
            request.total_capital,
            None,
            settings,
        )
        return [r.model_dump() for r in results]

    except Exception as e:
        logger.exception("stress_test_failed")
        raise HTTPException(
            status_code=500,
            detail=f"Stress test failed: {str(e)}",
        )
