"""
ranking 模块
检索结果的多因子优先级重排
"""

from .advice import practical_advice
from .config import (
  ScoringWeights,
  ScorerConfig,
  DEFAULT_WEIGHTS,
  DEFAULT_CATEGORY_WEIGHTS,
)
from .models import RelevanceFactors, ScoredFragment
from .scorer import (
  PriorityScorer,
  detect_fragment_entity,
  entity_match_score,
  context_match_score,
  practical_value_score,
  specificity_score,
)

__all__ = [
  "practical_advice",
  "ScoringWeights",
  "ScorerConfig",
  "DEFAULT_WEIGHTS",
  "DEFAULT_CATEGORY_WEIGHTS",
  "RelevanceFactors",
  "ScoredFragment",
  "PriorityScorer",
  "detect_fragment_entity",
  "entity_match_score",
  "context_match_score",
  "practical_value_score",
  "specificity_score",
]
