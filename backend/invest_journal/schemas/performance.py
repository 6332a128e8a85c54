"""Performance chart schemas."""
from decimal import Decimal
from typing import List, Optional
import enum

from pydantic import BaseModel, Field


class BenchmarkStatus(str, enum.Enum):
    """State of the benchmark overlay."""
    DISABLED = "disabled"  # not requested, or there is no history to compare
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"  # requested but the reference series could not be fetched


class PerformancePoint(BaseModel):
    """Single point of the performance chart."""
    date: str = Field(..., description="Journal date (ISO)")
    total_value: Decimal = Field(..., description="Valuation in local currency")
    percent_change: float = Field(..., description="Change from the first point of the window (%)")
    reference_value: Optional[Decimal] = Field(None, description="Benchmark close aligned to this date")
    reference_percent_change: Optional[float] = Field(None, description="Benchmark change from the same anchor (%)")
    has_note: bool = Field(False, description="Journal has a memo or market issues")
    label: str = Field(..., description="Short axis label")


class PerformanceResponse(BaseModel):
    """Schema for the journal performance chart."""
    range: str = Field(..., description="Active time window (all, 1y, 3y)")
    source: str = Field(..., description="Valuation source (live or stored)")
    exchange_rate: Decimal = Field(..., description="USD rate used for live valuation")
    has_history: bool = Field(..., description="Whether any journal falls in the window")
    data: List[PerformancePoint] = Field(default_factory=list)
    benchmark_symbol: Optional[str] = None
    benchmark_status: BenchmarkStatus = BenchmarkStatus.DISABLED
    period_return: Optional[float] = Field(None, description="Portfolio return over the window (%)")
    benchmark_return: Optional[float] = Field(None, description="Benchmark return over the window (%)")
    alpha: Optional[float] = Field(None, description="Portfolio minus benchmark return (%)")
    period_return_label: Optional[str] = None
    benchmark_return_label: Optional[str] = None
    alpha_label: Optional[str] = None
    latest_total_value: Optional[int] = Field(None, description="Floored latest valuation")
    latest_total_label: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "range": "1y",
                    "source": "live",
                    "exchange_rate": "1300",
                    "has_history": True,
                    "data": [
                        {"date": "2024-02-01", "total_value": "10000000", "percent_change": 0.0,
                         "reference_value": "490.1", "reference_percent_change": 0.0,
                         "has_note": False, "label": "1000만"},
                        {"date": "2025-01-15", "total_value": "12000000", "percent_change": 20.0,
                         "reference_value": "588.1", "reference_percent_change": 20.0,
                         "has_note": True, "label": "1200만"}
                    ],
                    "benchmark_symbol": "SPY",
                    "benchmark_status": "available",
                    "period_return": 20.0,
                    "benchmark_return": 20.0,
                    "alpha": 0.0,
                    "period_return_label": "+20.00%",
                    "benchmark_return_label": "+20.00%",
                    "alpha_label": "+0.00%",
                    "latest_total_value": 12000000,
                    "latest_total_label": "1천만 200만원"
                }
            ]
        }
    }
