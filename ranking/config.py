"""
优先级打分配置
权重只是未经调优的默认值，可整体替换
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class ScoringWeights:
  """相似度与四个相关性因子的加权系数"""
  similarity: float = 0.3
  entity_match: float = 0.3
  context_match: float = 0.2
  practical_value: float = 0.1
  specificity_score: float = 0.1


DEFAULT_WEIGHTS = ScoringWeights()

# 分类 → 权重覆盖
DEFAULT_CATEGORY_WEIGHTS: Mapping[str, ScoringWeights] = MappingProxyType({
  # 料金：偏重实体匹配
  "pricing": replace(DEFAULT_WEIGHTS, entity_match=0.4, similarity=0.2),
  # 营业时间：偏重具体性
  "business-hours": replace(DEFAULT_WEIGHTS, specificity_score=0.2),
  # 设施信息：偏重上下文和实体匹配
  "facility-info": ScoringWeights(
    similarity=0.2,
    entity_match=0.35,
    context_match=0.35,
    practical_value=0.05,
    specificity_score=0.05,
  ),
})

# 分类别名（知识库分类名 → 路由分类名）
CATEGORY_ALIASES: Mapping[str, str] = MappingProxyType({
  "hours": "business-hours",
  "price": "pricing",
})


@dataclass(frozen=True)
class ScorerConfig:
  """打分器配置"""
  default_weights: ScoringWeights = DEFAULT_WEIGHTS
  category_weights: Mapping[str, ScoringWeights] = field(
    default_factory=lambda: DEFAULT_CATEGORY_WEIGHTS,
  )

  def weights_for(self, category: str) -> ScoringWeights:
    key = CATEGORY_ALIASES.get(category, category)
    return self.category_weights.get(key, self.default_weights)
