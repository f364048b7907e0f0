from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class MetricData(BaseModel):
    """A stored metric cell."""
    date: date
    metric_type: str
    value: Decimal
    description: str = ""

    model_config = {"from_attributes": True}


class MetricSeries(BaseModel):
    name: str
    description: str
    prefix: str = ""
    suffix: str = ""
    values: List[Decimal] = Field(default_factory=list)
    # Rendered with two decimals, e.g. "0.00"
    total: str = "0.00"


class MetricsReport(BaseModel):
    metrics: List[MetricSeries] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)


class SpotlightEntry(BaseModel):
    name: str = ""
    amount: Decimal = Decimal("0")


class Spotlight(BaseModel):
    biggest_mover: SpotlightEntry = Field(default_factory=SpotlightEntry)
    best_seller: SpotlightEntry = Field(default_factory=SpotlightEntry)
    top_customer: SpotlightEntry = Field(default_factory=SpotlightEntry)
