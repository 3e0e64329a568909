"""
Demand forecast schemas.
"""

from pydantic import Field
from datetime import date

from models.base import BaseSchema


class WeeklyForecastPrediction(BaseSchema):
    """Predicted boxes for one variety in one week."""

    variety: str = Field(..., min_length=1)
    quantity: int = Field(..., description="Predicted boxes")


class WeeklyForecast(BaseSchema):
    """One forecast week, e.g. "Week 1"."""

    week: str
    predictions: list[WeeklyForecastPrediction] = Field(default_factory=list)


class ForecastHistoryPoint(BaseSchema):
    """One completed order line sent to the forecaster."""

    variety: str
    quantity: int
    order_date: date = Field(..., alias="date")


class ForecastResponse(BaseSchema):
    """API response for the forecast view."""

    available: bool
    weeks: list[WeeklyForecast] = Field(default_factory=list)
    history_points: int = 0
