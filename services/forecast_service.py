"""
Demand forecast provider.

The intelligent sowing planner asks a provider for four weeks of predicted
boxes per variety. The provider is injected, so planners can run against a
fixed forecast in tests and against Claude in production.
"""

import json
import re
from typing import Optional, Protocol

import anthropic
import structlog
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from config import settings
from exceptions import ForecastServiceError
from models.order import Order, OrderStatus
from models.forecast import ForecastHistoryPoint, WeeklyForecast, WeeklyForecastPrediction

logger = structlog.get_logger(__name__)

FORECAST_WEEKS = 4

_forecast_adapter = TypeAdapter(list[WeeklyForecast])


def build_forecast_history(orders: list[Order]) -> list[ForecastHistoryPoint]:
    """One history point per item of every Completed order, dated by creation day."""
    return [
        ForecastHistoryPoint(
            variety=item.variety,
            quantity=item.quantity,
            order_date=order.created_at.date(),
        )
        for order in orders
        if order.status == OrderStatus.COMPLETED
        for item in order.items
    ]


class DemandForecastProvider(Protocol):
    """Anything that can turn order history into weekly demand predictions."""

    def forecast(self, history: list[ForecastHistoryPoint]) -> Optional[list[WeeklyForecast]]:
        """
        Predict weekly demand.

        Returns:
            Weeks in order (week 1 first), or None when no forecast is available

        Raises:
            ForecastServiceError: If the forecast could not be produced
        """
        ...


class StaticForecastProvider:
    """Returns a fixed forecast. Used for fixtures and manual overrides."""

    def __init__(self, weeks: Optional[list[WeeklyForecast]] = None):
        self.weeks = weeks

    def forecast(self, history: list[ForecastHistoryPoint]) -> Optional[list[WeeklyForecast]]:
        return self.weeks


class ClaudeForecastProvider:
    """
    Forecast weekly demand with Claude.

    Sends completed order lines as JSON and asks for a strict JSON array of
    four weeks. Too little history or no API key means no forecast.
    """

    MAX_TOKENS = 2048

    SYSTEM_PROMPT = """You are a demand forecasting expert for a microgreens business.
Based on historical sales data (in 50g boxes), predict the demand for each microgreen variety for the next 4 weeks.
Analyze trends, seasonality, and individual variety performance.

Return ONLY a JSON array of exactly 4 objects, no other text or markdown:
[
  {"week": "Week 1", "predictions": [{"variety": "Sunflower", "quantity": 12}]},
  {"week": "Week 2", "predictions": []},
  {"week": "Week 3", "predictions": []},
  {"week": "Week 4", "predictions": []}
]

Rules:
- "variety" is the microgreen name exactly as it appears in the history
- "quantity" is the predicted number of boxes as an integer
- Only include varieties with a predicted demand greater than 0"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        min_history: Optional[int] = None,
        client: Optional[anthropic.Anthropic] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.model = model or settings.forecast_model
        self.min_history = min_history if min_history is not None else settings.forecast_min_history

        if client is not None:
            self.client = client
        elif self.api_key:
            self.client = anthropic.Anthropic(api_key=self.api_key)
        else:
            self.client = None

    @property
    def available(self) -> bool:
        return self.client is not None

    def forecast(self, history: list[ForecastHistoryPoint]) -> Optional[list[WeeklyForecast]]:
        """
        Ask Claude for four weeks of demand.

        Returns:
            Parsed weeks, or None when the client is not configured or the
            history is shorter than min_history

        Raises:
            ForecastServiceError: On API failure or an unusable response
        """
        if len(history) < self.min_history:
            logger.info(
                "forecast_skipped_insufficient_history",
                history_points=len(history),
                required=self.min_history
            )
            return None

        if not self.available:
            logger.info("forecast_skipped_not_configured")
            return None

        logger.info("forecast_requested", history_points=len(history), model=self.model)

        history_json = json.dumps([p.model_dump(mode="json", by_alias=True) for p in history])

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.MAX_TOKENS,
                temperature=0.2,
                system=self.SYSTEM_PROMPT,
                messages=[{
                    "role": "user",
                    "content": f"Historical Data:\n{history_json}"
                }]
            )
        except anthropic.APIError as e:
            logger.error("forecast_api_error", error=str(e))
            raise ForecastServiceError(details={"reason": str(e)}) from e

        text_blocks = [
            block.text for block in (response.content or [])
            if isinstance(getattr(block, "text", None), str)
        ]
        if not text_blocks:
            logger.error("forecast_response_empty", stop_reason=getattr(response, "stop_reason", None))
            raise ForecastServiceError(details={"reason": "empty forecast response"})

        response_text = text_blocks[0]
        logger.debug("forecast_response_received", response_length=len(response_text))

        weeks = self._parse_response(response_text)
        logger.info(
            "forecast_completed",
            weeks=len(weeks),
            predictions=sum(len(w.predictions) for w in weeks)
        )
        return weeks

    def _parse_response(self, response_text: str) -> list[WeeklyForecast]:
        """
        Parse Claude's JSON array into weekly forecasts.

        Markdown fences are stripped; non-positive predictions are dropped.
        """
        cleaned = response_text.strip()
        if cleaned.startswith("```"):
            cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
            cleaned = re.sub(r'\s*```$', '', cleaned)

        if not cleaned:
            return []

        try:
            weeks = _forecast_adapter.validate_json(cleaned)
        except PydanticValidationError as e:
            logger.error(
                "forecast_parse_failed",
                response_preview=response_text[:500],
                errors=e.error_count()
            )
            raise ForecastServiceError(details={"reason": "unparseable forecast response"}) from e

        return [
            WeeklyForecast(
                week=week.week,
                predictions=[
                    WeeklyForecastPrediction(variety=p.variety, quantity=p.quantity)
                    for p in week.predictions
                    if p.quantity > 0
                ],
            )
            for week in weeks[:FORECAST_WEEKS]
        ]


# Singleton instance
_forecast_provider: Optional[DemandForecastProvider] = None


def get_forecast_provider() -> DemandForecastProvider:
    """Get or create the configured forecast provider."""
    global _forecast_provider
    if _forecast_provider is None:
        _forecast_provider = ClaudeForecastProvider()
    return _forecast_provider


def set_forecast_provider(provider: Optional[DemandForecastProvider]) -> None:
    """Replace the provider (None restores the default on next use)."""
    global _forecast_provider
    _forecast_provider = provider
