"""
Tri-state metric result

A metric is either measured (calculated=True) or there was too little data
to measure it (calculated=False). An uncalculated value is always 0.0 and
must never be stored or shown as a measurement.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class MetricResult:
    """Calculated metric with status and sample size"""
    value: float = 0.0
    calculated: bool = False
    sample_size: int = 0

    @classmethod
    def measured(cls, value: float, sample_size: int) -> 'MetricResult':
        return cls(value=float(value), calculated=True, sample_size=int(sample_size))

    @classmethod
    def insufficient(cls, sample_size: int = 0) -> 'MetricResult':
        """Not enough data; sample_size is how many qualifying samples were seen"""
        return cls(value=0.0, calculated=False, sample_size=int(sample_size))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'calculated': self.calculated,
            'sample_size': self.sample_size
        }
