from __future__ import annotations

from dataclasses import dataclass
from typing import Union

Number = Union[int, float]

COUNTER = "c"
TIMING = "ms"


@dataclass(frozen=True)
class MetricUpdate:
    name: str
    value: str  # "<payload>|<type>[|@<rate>]"

    def sampled(self, sample_rate: Number) -> MetricUpdate:
        return MetricUpdate(name=self.name, value=f"{self.value}|@{sample_rate}")

    def line(self) -> str:
        return f"{self.name}:{self.value}"


def format_value(payload: Number, metric_type: str) -> str:
    return f"{payload}|{metric_type}"
