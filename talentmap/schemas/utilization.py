from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UtilizationClass(str, Enum):
    available = "available"
    partial = "partial"
    full = "full"
    overallocated = "overallocated"

    @property
    def label(self) -> str:
        return {
            "available": "Available",
            "partial": "Partially Utilized",
            "full": "Fully Utilized",
            "overallocated": "Overallocated",
        }[self.value]


class BenchRisk(str, Enum):
    crisis = "Crisis"
    layoff_recommended = "Layoff Recommended"
    at_risk = "At Risk"
    underutilized = "Underutilized"
    optimal = "Optimal"

    @property
    def severity(self) -> Optional[str]:
        return {
            "Crisis": "destructive",
            "Layoff Recommended": "orange",
            "At Risk": "yellow",
            "Underutilized": "info",
            "Optimal": None,
        }[self.value]


# Shared properties
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UtilizationSummary(CamelModel):
    """Derived utilization view of one employee, as consumed by tables, cards and the board."""
    employee_id: int
    utilization_percent: int
    classification: UtilizationClass
    bench_risk_label: Optional[str] = None


class BenchEntry(CamelModel):
    employee_id: int
    name: str
    utilization_percent: int
    bench_days: int
    bench_since: Optional[str] = None
    risk: BenchRisk
    severity: Optional[str] = None
