"""
查询分类器
规范化 → 规则层 → 小模型层（仅在规则置信度不足时），结果按 (规范化查询, 语言) 缓存
"""

import asyncio
import json
import logging
import re
import time
from collections import OrderedDict
from typing import Callable, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from disambiguation.rules import detect_ambiguity
from memory.extraction import detect_entity
from prompts import PromptLoader
from .enhancer import own_request_type
from .language import detect_language, determine_response_language
from .models import Category, REQUEST_TYPE_CATEGORY, RouteResult

logger = logging.getLogger(__name__)


# 语音识别常见误写 → 规范写法（按顺序替换，长的在前）
_SPEECH_VARIANTS = (
  ("coffee say no", "saino cafe"),
  ("say no", "saino"),
  ("才能", "saino"),
  ("セイノ", "saino"),
  ("サイノ", "saino"),
  ("さいの", "saino"),
)

_LEADING_FILLERS = re.compile(
  r"^(じゃあ|じゃ|では|それでは|えっと|えーと|あの|その)[、,\s]*"
  r"|^(well|then|so|um|uh)\b[,\s]*",
  re.IGNORECASE,
)

MEMORY_RECALL_KEYWORDS = (
  "さっき", "前に", "覚えて", "記憶", "聞いた", "話した", "先ほど",
  "remember", "recall", "earlier", "previous", "what did i",
)

# 含这些词的查询即使带回溯词也是设施问题
_FACILITY_OVERRIDES = ("地下", "basement", "会議室", "施設", "facility", "engineer", "エンジニア", "saino")

EVENT_KEYWORDS = ("イベント", "event", "勉強会", "meetup", "予定", "schedule", "カレンダー", "calendar")

_GENERAL_FACILITY_KEYWORDS = ("施設", "facility", "設備", "equipment", "使い方", "how to use")


def normalize_query(query: str) -> str:
  """
  查询规范化

  小写化、统一语音识别误写、去掉开头的口头语
  """
  text = query.strip().lower()
  for variant, canonical in _SPEECH_VARIANTS:
    text = text.replace(variant, canonical)
  # 口头语可能连续出现
  previous = None
  while previous != text:
    previous = text
    text = _LEADING_FILLERS.sub("", text, count=1).strip()
  return text or query.strip().lower()


def _parse_json_response(text: str) -> Optional[dict]:
  """
  解析 LLM 返回的 JSON（容错处理）

  Args:
    text: LLM 原始输出

  Returns:
    解析后的 dict，失败返回 None
  """
  text = text.strip()
  # 清理 markdown 代码块
  if text.startswith("```"):
    text = text.split("\n", 1)[-1]
  if text.endswith("```"):
    text = text.rsplit("```", 1)[0]
  text = text.strip()

  try:
    data = json.loads(text)
  except json.JSONDecodeError:
    logger.error("JSON 解析失败: %s", text[:200])
    return None
  return data if isinstance(data, dict) else None


class QueryClassifier:
  """
  查询分类器

  分类永远不失败：规则层置信度不足且小模型不可用 / 出错 / 超时时，
  归为 general-knowledge 并给出低置信度。
  """

  def __init__(
    self,
    model: Optional[BaseChatModel] = None,
    confidence_threshold: float = 0.6,
    timeout_seconds: float = 10.0,
    prompt_loader: Optional[PromptLoader] = None,
    cache_ttl_seconds: float = 600.0,
    cache_max_entries: int = 512,
    clock: Callable[[], float] = time.monotonic,
  ):
    """
    初始化分类器

    Args:
      model: 小模型（None 时只用规则层）
      confidence_threshold: 低于该置信度时归为 general-knowledge
      timeout_seconds: 小模型调用超时
      prompt_loader: 提示词加载器
      cache_ttl_seconds: 分类结果缓存的有效期
      cache_max_entries: 缓存容量，超出后按最久未使用淘汰
      clock: 时间源
    """
    self.model = model
    self.confidence_threshold = confidence_threshold
    self.timeout_seconds = timeout_seconds
    self._loader = prompt_loader or PromptLoader()
    self._cache_ttl = cache_ttl_seconds
    self._cache_max_entries = cache_max_entries
    self._clock = clock
    self._cache: OrderedDict[tuple[str, Optional[str]], tuple[float, RouteResult]] = OrderedDict()

  def clear_cache(self) -> None:
    self._cache.clear()

  async def classify(self, query: str, language: Optional[str] = None) -> RouteResult:
    """
    分类查询

    Args:
      query: 原始查询
      language: 强制回复语言（None 时自动检测）

    Returns:
      RouteResult
    """
    normalized = normalize_query(query)
    key = (normalized, language)
    now = self._clock()
    cached = self._cache.get(key)
    if cached is not None:
      expires_at, result = cached
      if expires_at > now:
        self._cache.move_to_end(key)
        return result
      del self._cache[key]

    response_language = determine_response_language(detect_language(query), language)
    result = self._classify_by_rules(normalized, response_language)
    if result is None or result.confidence < self.confidence_threshold:
      result = await self._classify_by_model(normalized, response_language, result)

    if result.confidence < self.confidence_threshold and result.category != Category.GENERAL_KNOWLEDGE:
      result = RouteResult(
        category=Category.GENERAL_KNOWLEDGE,
        request_type=result.request_type,
        language=result.language,
        confidence=result.confidence,
        entity=result.entity,
        ambiguity=result.ambiguity,
        reason=f"below_threshold:{result.reason}",
      )

    logger.debug(
      "查询分类: %r → %s/%s (%.2f, %s)",
      normalized, result.category, result.request_type, result.confidence, result.reason,
    )
    # 模型失败时的降级结果不缓存，下次重新询问模型
    if result.reason != "default":
      self._cache[key] = (now + self._cache_ttl, result)
      while len(self._cache) > self._cache_max_entries:
        self._cache.popitem(last=False)
    return result

  # ============================================================
  # 规则层
  # ============================================================

  def _classify_by_rules(self, normalized: str, language: str) -> Optional[RouteResult]:
    """
    规则分类

    Returns:
      RouteResult；规则无法判断时返回 None
    """
    entity = detect_entity(normalized)
    request_type = own_request_type(normalized)
    ambiguity = detect_ambiguity(normalized)

    def _result(category: str, confidence: float, reason: str) -> RouteResult:
      return RouteResult(
        category=category,
        request_type=request_type,
        language=language,
        confidence=confidence,
        entity=entity,
        ambiguity=ambiguity,
        reason=reason,
      )

    if any(k in normalized for k in MEMORY_RECALL_KEYWORDS):
      if not any(k in normalized for k in _FACILITY_OVERRIDES):
        return _result(Category.MEMORY_RECALL, 0.9, "memory_keyword")

    if ambiguity is not None:
      category = REQUEST_TYPE_CATEGORY.get(request_type or "", Category.FACILITY_INFO)
      return _result(category, 0.7, f"ambiguous_{ambiguity.type}")

    if request_type is not None:
      return _result(REQUEST_TYPE_CATEGORY[request_type], 0.85, f"request_type:{request_type}")

    if any(k in normalized for k in EVENT_KEYWORDS):
      return _result(Category.EVENTS, 0.8, "event_keyword")

    if entity is not None or any(k in normalized for k in _GENERAL_FACILITY_KEYWORDS):
      return _result(Category.FACILITY_INFO, 0.7, "facility_mention")

    return None

  # ============================================================
  # 小模型层
  # ============================================================

  async def _classify_by_model(
    self,
    normalized: str,
    language: str,
    rule_result: Optional[RouteResult],
  ) -> RouteResult:
    """小模型分类，任何失败都降级为低置信度的 general-knowledge"""
    request_type = rule_result.request_type if rule_result else own_request_type(normalized)
    entity = rule_result.entity if rule_result else detect_entity(normalized)
    default = RouteResult(
      category=Category.GENERAL_KNOWLEDGE,
      request_type=request_type,
      language=language,
      confidence=0.3,
      entity=entity,
      reason="default",
    )
    if self.model is None:
      return rule_result or default

    try:
      chain = (
        ChatPromptTemplate.from_template(self._loader.load("router/classify.txt"))
        | self.model
        | StrOutputParser()
      )
      text = await asyncio.wait_for(
        chain.ainvoke({"query": normalized}),
        timeout=self.timeout_seconds,
      )
    except asyncio.TimeoutError:
      logger.warning("分类模型超时 (%.1fs)", self.timeout_seconds)
      return default
    except Exception as e:
      logger.error("分类模型调用失败: %s", e)
      return default

    data = _parse_json_response(text)
    if data is None:
      return default
    category = str(data.get("category", "")).strip().lower()
    if category not in Category.ALL:
      logger.warning("分类模型返回未知分类: %r", category)
      return default
    try:
      confidence = max(0.0, min(1.0, float(data.get("confidence", 0.7))))
    except (TypeError, ValueError):
      confidence = 0.7

    return RouteResult(
      category=category,
      request_type=request_type,
      language=language,
      confidence=confidence,
      entity=entity,
      ambiguity=rule_result.ambiguity if rule_result else None,
      reason="model",
    )
