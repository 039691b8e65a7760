"""
检索数据模型
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class KnowledgeFragment:
  """
  一条检索得到的知识片段（对核心只读）

  Attributes:
    content: 文本内容
    similarity: 语义相似度 0~1
    category: 知识库分类（hours / saino-cafe / facility-info ...）
    language: "ja" 或 "en"
    title: 标题
  """
  content: str
  similarity: float
  category: str = ""
  language: str = "ja"
  title: Optional[str] = None

  def to_dict(self) -> dict[str, Any]:
    return {
      "content": self.content,
      "similarity": self.similarity,
      "category": self.category,
      "language": self.language,
      "title": self.title,
    }


@dataclass(frozen=True)
class SearchResult:
  """检索结果；success=False 一律当作"没有片段"处理"""
  success: bool
  results: tuple[KnowledgeFragment, ...] = field(default_factory=tuple)
  message: str = ""

  @classmethod
  def failed(cls, message: str = "") -> "SearchResult":
    return cls(success=False, results=(), message=message)

  @property
  def fragments(self) -> list[KnowledgeFragment]:
    """成功时的片段列表，失败时为空"""
    return list(self.results) if self.success else []
