"""
打分结果数据模型
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class RelevanceFactors:
  """四个相关性因子，均在 0~1"""
  entity_match: float
  context_match: float
  practical_value: float
  specificity_score: float


@dataclass(frozen=True)
class ScoredFragment:
  """
  带优先级分数的知识片段

  Attributes:
    content / similarity / category / language / title: 同 KnowledgeFragment
    entity: engineer-cafe / saino / meeting-room / general
    relevance_factors: 相关性因子
    priority_score: 加权总分
  """
  content: str
  similarity: float
  category: str
  language: str
  title: Optional[str]
  entity: str
  relevance_factors: RelevanceFactors
  priority_score: float

  def to_dict(self) -> dict[str, Any]:
    return {
      "content": self.content,
      "similarity": self.similarity,
      "category": self.category,
      "language": self.language,
      "title": self.title,
      "entity": self.entity,
      "relevance_factors": {
        "entity_match": self.relevance_factors.entity_match,
        "context_match": self.relevance_factors.context_match,
        "practical_value": self.relevance_factors.practical_value,
        "specificity_score": self.relevance_factors.specificity_score,
      },
      "priority_score": self.priority_score,
    }
