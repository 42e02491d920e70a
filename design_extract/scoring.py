"""Confidence scoring for raw observations.

Every observation is scored from two signals: the weight of the context it was
found in (looked up in a tag -> weight table) and a bounded frequency bonus.
The frequency bonus is capped below the gap between the high and medium
thresholds; context decides the tier and repetition only nudges it.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from design_extract.errors import ConfigurationError
from design_extract.models import Confidence, Observation

logger = logging.getLogger(__name__)


DEFAULT_CONTEXT_WEIGHTS: Dict[str, float] = {
    "logo": 1.0,
    "brand": 1.0,
    "css-variable": 0.85,
    "button": 0.7,
    "heading": 0.6,
    "link": 0.55,
    "body": 0.5,
    "nav": 0.5,
    "header": 0.5,
    "input": 0.45,
    "label": 0.4,
    "card": 0.4,
    "text": 0.35,
    "footer": 0.3,
}


@dataclass(frozen=True)
class ConfidencePolicy:
    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_CONTEXT_WEIGHTS))
    default_weight: float = 0.2
    high_threshold: float = 0.7
    medium_threshold: float = 0.4
    frequency_scale: float = 0.1
    frequency_cap: float = 0.2

    def __post_init__(self):
        if not 0 <= self.medium_threshold < self.high_threshold:
            raise ConfigurationError(
                f"Confidence thresholds must satisfy 0 <= medium < high "
                f"(got medium={self.medium_threshold}, high={self.high_threshold})"
            )
        if self.frequency_cap < 0 or self.frequency_scale < 0:
            raise ConfigurationError("Frequency scale and cap must be non-negative")
        if self.frequency_cap >= self.high_threshold - self.medium_threshold:
            raise ConfigurationError(
                "Frequency cap must stay below the high/medium threshold gap "
                f"(cap={self.frequency_cap}, gap={self.high_threshold - self.medium_threshold:g})"
            )
        for tag, weight in self.weights.items():
            if not isinstance(weight, (int, float)) or isinstance(weight, bool):
                raise ConfigurationError(f"Weight for context {tag!r} must be a number")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConfidencePolicy":
        """Build a policy from a JSON-style table; missing keys keep defaults."""
        kwargs: Dict[str, Any] = {}
        if "weights" in data:
            if not isinstance(data["weights"], Mapping):
                raise ConfigurationError("'weights' must be an object of tag -> weight")
            weights = dict(DEFAULT_CONTEXT_WEIGHTS)
            if data.get("replace_weights"):
                weights = {}
            weights.update({str(k).lower(): v for k, v in data["weights"].items()})
            kwargs["weights"] = weights
        thresholds = data.get("thresholds") or {}
        if not isinstance(thresholds, Mapping):
            raise ConfigurationError("'thresholds' must be an object with 'high' and/or 'medium'")
        if "high" in thresholds:
            kwargs["high_threshold"] = thresholds["high"]
        if "medium" in thresholds:
            kwargs["medium_threshold"] = thresholds["medium"]
        for key in ("default_weight", "frequency_scale", "frequency_cap"):
            if key in data:
                kwargs[key] = data[key]
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid confidence policy: {exc}") from exc

    def weight_for(self, context: Optional[str]) -> float:
        if not context:
            return self.default_weight
        tag = context.lower()
        if tag in self.weights:
            return float(self.weights[tag])
        # heading-1 -> heading
        base = tag.split("-", 1)[0]
        if base in self.weights:
            return float(self.weights[base])
        return self.default_weight

    def frequency_bonus(self, count: int) -> float:
        if count <= 1:
            return 0.0
        return min(self.frequency_cap, self.frequency_scale * math.log10(count))

    def score(self, context: Optional[str], count: int) -> float:
        return round(self.weight_for(context) + self.frequency_bonus(count), 4)

    def tier(self, score: float) -> Confidence:
        if score >= self.high_threshold:
            return Confidence.HIGH
        if score >= self.medium_threshold:
            return Confidence.MEDIUM
        return Confidence.LOW


class ConfidenceScorer:
    def __init__(self, policy: Optional[ConfidencePolicy] = None):
        self.policy = policy or ConfidencePolicy()

    def score(self, observation: Observation) -> Observation:
        value = self.policy.score(observation.context, observation.count)
        return replace(observation, confidence=self.policy.tier(value))

    def score_all(self, observations: Iterable[Observation]) -> List[Observation]:
        scored = [self.score(obs) for obs in observations]
        if scored:
            tally = {tier: 0 for tier in Confidence}
            for obs in scored:
                tally[obs.confidence] += 1
            logger.debug(
                "Scored %d %s observations (high=%d medium=%d low=%d)",
                len(scored),
                scored[0].category,
                tally[Confidence.HIGH],
                tally[Confidence.MEDIUM],
                tally[Confidence.LOW],
            )
        return scored
