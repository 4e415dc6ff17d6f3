"""Модель оповіщення (Alert)."""

from __future__ import annotations

from dataclasses import dataclass

from src.contracts.enums import AlertKind


@dataclass(slots=True)
class Alert:
    """Оповіщення, згенероване при перевищенні порогу на серії записів."""

    kind: AlertKind
    severity: str  # low | medium | high | critical
    message: str
    count: int  # how many records triggered the condition
    observed: float  # worst observed value (min, max or spread, depending on kind)
    threshold: float

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "severity": self.severity,
            "message": self.message,
            "count": self.count,
            "observed": self.observed,
            "threshold": self.threshold,
        }
