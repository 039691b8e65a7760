"""
查询路由器
唯一对外入口 resolve_query：按固定的阶段列表依次处理不可变的中间状态，
任何阶段产出回复即短路，最终统一写入记忆并经过校验后返回
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional

from langchain_core.language_models import BaseChatModel

from disambiguation import DisambiguationManager
from langchain_wrapper import ResponseSynthesizer, UnifiedResponse, fallback_response
from memory.manager import ShortTermMemory
from ranking import PriorityScorer, ScoredFragment, practical_advice
from retrieval import KnowledgeFragment, KnowledgeSearch
from topic_filter import FilterResult, filter_by_request_type
from validation import ResponseEnvelopeChecker
from .classifier import QueryClassifier, normalize_query
from .config import RouterConfig
from .enhancer import ContextualQueryEnhancer, is_short_context_query
from .language import detect_language, determine_response_language
from .models import Category, EnhancedQuery, REQUEST_TYPE_CATEGORY, RouteResult

logger = logging.getLogger(__name__)


# 记忆中的实体名 → 打分器的实体名
_FRAGMENT_ENTITY = {
  "engineer": "engineer-cafe",
  "saino": "saino",
  "meeting-room": "meeting-room",
}

KNOWLEDGE_SOURCE = "knowledge_base"


@dataclass(frozen=True)
class QueryState:
  """
  流水线中间状态（每个阶段返回新对象）

  Attributes:
    query: 原始查询
    normalized: 规范化查询
    session_id: 会话 ID
    forced_language: 调用方指定的语言
    route: 分类结果
    enhanced: 上下文改写结果
    fragments: 检索片段
    scored: 打分排序后的片段
    context: 拼接后的检索上下文
    filtered: 子话题过滤结果
    response: 已产出的回复（非 None 时后续阶段跳过）
    resolved_entity: 本轮最终确定的实体（写入记忆用）
  """
  query: str
  normalized: str
  session_id: Optional[str] = None
  forced_language: Optional[str] = None
  route: Optional[RouteResult] = None
  enhanced: Optional[EnhancedQuery] = None
  fragments: tuple[KnowledgeFragment, ...] = ()
  scored: tuple[ScoredFragment, ...] = ()
  context: str = ""
  filtered: Optional[FilterResult] = None
  response: Optional[UnifiedResponse] = None
  resolved_entity: Optional[str] = None

  @property
  def language(self) -> str:
    return self.route.language if self.route else (self.forced_language or "ja")

  @property
  def request_type(self) -> Optional[str]:
    if self.enhanced is not None:
      return self.enhanced.request_type
    return self.route.request_type if self.route else None

  @property
  def category(self) -> Optional[str]:
    return self.route.category if self.route else None


Stage = Callable[[QueryState], Awaitable[QueryState]]


def focus_on_entity(scored: list[ScoredFragment], entity: Optional[str]) -> list[ScoredFragment]:
  """
  去掉明确属于其他实体的片段

  只在仍有片段剩余时生效；general 片段始终保留
  """
  target = _FRAGMENT_ENTITY.get(entity or "")
  if target is None:
    return scored
  focused = [s for s in scored if s.entity in (target, "general")]
  return focused or scored


class QueryRouter:
  """
  查询路由器

  阶段列表：
  分类 → 消歧 → 记忆回溯 → 改写 → 检索 → 打分 → 实体聚焦 → 拼接 → 过滤 → 生成

  短期记忆通过构造参数注入；路由器本身除分类缓存外没有可变状态。
  """

  def __init__(
    self,
    search: KnowledgeSearch,
    memory: Optional[ShortTermMemory] = None,
    model: Optional[BaseChatModel] = None,
    classifier_model: Optional[BaseChatModel] = None,
    config: RouterConfig = RouterConfig(),
  ):
    """
    初始化路由器

    Args:
      search: 语义检索实现
      memory: 短期记忆（None 时无状态运行）
      model: 回答生成模型（None 时直接摘取过滤后的上下文）
      classifier_model: 分类小模型（None 时只用规则分类）
      config: 路由配置
    """
    self.config = config
    self._search = search
    self._memory = memory
    self._classifier = QueryClassifier(
      model=classifier_model,
      confidence_threshold=config.classification_threshold,
      timeout_seconds=config.classification_timeout,
    )
    self._enhancer = ContextualQueryEnhancer(memory)
    self._disambiguation = DisambiguationManager(memory)
    self._scorer = PriorityScorer(config.scorer)
    self._synthesizer = ResponseSynthesizer(
      model=model,
      timeout_seconds=config.generation_timeout,
      agent_name=config.agent_name,
    )
    self._checker = ResponseEnvelopeChecker()

    self._stages: tuple[Stage, ...] = (
      self._classify,
      self._disambiguate,
      self._recall_memory,
      self._enhance,
      self._retrieve,
      self._score,
      self._focus,
      self._join_context,
      self._filter,
      self._synthesize,
    )

  @property
  def classifier(self) -> QueryClassifier:
    return self._classifier

  # ============================================================
  # 对外入口
  # ============================================================

  async def resolve_query(
    self,
    query: str,
    language: Optional[str] = None,
    session_id: Optional[str] = None,
  ) -> UnifiedResponse:
    """
    解析并回答查询（永不抛出异常）

    Args:
      query: 用户查询
      language: 强制回复语言（"ja" / "en"）
      session_id: 会话 ID（None 时不读写记忆）

    Returns:
      UnifiedResponse
    """
    fallback_language = determine_response_language(detect_language(query or ""), language)
    if not query or not query.strip():
      return fallback_response(fallback_language, agent_name=self.config.agent_name, reason="empty_query")

    try:
      response = await asyncio.wait_for(
        self._run(query, language, session_id),
        timeout=self.config.overall_timeout,
      )
    except asyncio.TimeoutError:
      logger.warning("查询处理超时 (%.1fs): %r", self.config.overall_timeout, query)
      response = fallback_response(fallback_language, agent_name=self.config.agent_name, reason="timeout")
    except Exception as e:
      logger.error("查询处理失败: %s", e, exc_info=True)
      response = fallback_response(fallback_language, agent_name=self.config.agent_name, reason="error")

    return self._checker.ensure_valid(response)

  async def _run(
    self,
    query: str,
    language: Optional[str],
    session_id: Optional[str],
  ) -> UnifiedResponse:
    state = QueryState(
      query=query.strip(),
      normalized=normalize_query(query),
      session_id=session_id,
      forced_language=language,
    )
    for stage in self._stages:
      state = await stage(state)
      if state.response is not None:
        break

    response = state.response or fallback_response(
      state.language, state.category, state.request_type, self.config.agent_name, "no_response",
    )
    self._remember(state, response)
    return response

  # ============================================================
  # 阶段
  # ============================================================

  async def _classify(self, state: QueryState) -> QueryState:
    route = await self._classifier.classify(state.query, state.forced_language)
    return replace(state, route=route, resolved_entity=route.entity)

  async def _disambiguate(self, state: QueryState) -> QueryState:
    route = state.route
    if self._disambiguation.is_other_option(state.normalized):
      response = self._disambiguation.resolve_other_option(
        state.normalized, route.language, state.session_id, route.request_type,
      )
      resolved = response.metadata.processing_info.get("resolved_entity")
      return replace(state, response=response, resolved_entity=resolved)

    if route.ambiguity is None:
      return state

    # 省略型追问且上文已经确定了其中一个选项时，交给改写阶段继承
    if state.session_id is not None and self._memory is not None and is_short_context_query(state.normalized):
      inherited = self._memory.get_context(state.session_id, route.language).inherited_entity
      if inherited in route.ambiguity.options:
        return state

    response = self._disambiguation.clarify(
      route.ambiguity, route.language, state.session_id, route.request_type,
    )
    return replace(state, response=response, resolved_entity=None)

  async def _recall_memory(self, state: QueryState) -> QueryState:
    if state.category != Category.MEMORY_RECALL:
      return state
    language = state.language
    if self._memory is None or state.session_id is None:
      response = await self._synthesizer.recall(
        state.query, "", language, has_history=False, category=state.category,
      )
      return replace(state, response=response)

    context = self._memory.get_context(state.session_id, language)
    response = await self._synthesizer.recall(
      state.query,
      context.context_string,
      language,
      has_history=not context.is_empty,
      category=state.category,
    )
    return replace(state, response=response)

  async def _enhance(self, state: QueryState) -> QueryState:
    enhanced = self._enhancer.enhance(state.normalized, state.language, state.session_id)
    route = state.route
    if enhanced.inherited and route.request_type is None and enhanced.request_type:
      # 继承到子话题后分类跟着确定
      route = replace(
        route,
        category=REQUEST_TYPE_CATEGORY.get(enhanced.request_type, route.category),
        request_type=enhanced.request_type,
        reason=f"{route.reason}+inherited",
      )
    return replace(
      state,
      route=route,
      enhanced=enhanced,
      resolved_entity=enhanced.entity or state.resolved_entity,
    )

  async def _retrieve(self, state: QueryState) -> QueryState:
    try:
      result = await asyncio.wait_for(
        self._search.search(
          state.enhanced.query,
          state.language,
          limit=self.config.retrieval_limit,
          threshold=self.config.retrieval_threshold,
        ),
        timeout=self.config.retrieval_timeout,
      )
    except asyncio.TimeoutError:
      logger.warning("检索超时 (%.1fs)", self.config.retrieval_timeout)
      return self._fail(state, "retrieval_timeout")
    except Exception as e:
      logger.error("检索失败: %s", e)
      return self._fail(state, "retrieval_error")

    if not result.success:
      logger.warning("检索不可用: %s", result.message)
      return self._fail(state, "retrieval_unavailable")
    if not result.fragments:
      logger.info("检索无结果: %r", state.enhanced.query)
      return self._fail(state, "no_results")
    return replace(state, fragments=tuple(result.fragments))

  async def _score(self, state: QueryState) -> QueryState:
    scored = self._scorer.score(
      list(state.fragments),
      state.enhanced.query,
      state.category or Category.GENERAL_KNOWLEDGE,
      state.language,
    )
    return replace(state, scored=tuple(scored))

  async def _focus(self, state: QueryState) -> QueryState:
    focused = focus_on_entity(list(state.scored), state.resolved_entity)
    if len(focused) != len(state.scored):
      logger.debug("实体聚焦 %s: %d → %d", state.resolved_entity, len(state.scored), len(focused))
    return replace(state, scored=tuple(focused))

  async def _join_context(self, state: QueryState) -> QueryState:
    top = state.scored[:self.config.context_fragments]
    context = "\n".join(s.content.strip() for s in top if s.content.strip())
    if not context:
      return self._fail(state, "empty_context")
    return replace(state, context=context)

  async def _filter(self, state: QueryState) -> QueryState:
    filtered = filter_by_request_type(
      state.context, state.request_type, state.language, entity=state.resolved_entity,
    )
    logger.debug(
      "子话题过滤 %s: %d → %d 字符",
      state.request_type, filtered.original_length, filtered.filtered_length,
    )
    return replace(state, filtered=filtered)

  async def _synthesize(self, state: QueryState) -> QueryState:
    context = state.filtered.text
    if self.config.append_practical_advice:
      advice = practical_advice(state.query, state.category or "", state.language)
      if advice:
        context = f"{context}\n{advice}"

    response = await self._synthesizer.synthesize(
      query=state.query,
      context=context,
      language=state.language,
      category=state.category,
      request_type=state.request_type,
      confidence=self.config.success_confidence,
      sources=[KNOWLEDGE_SOURCE],
      processing_info={
        "filtered": state.filtered.filtered_length < state.filtered.original_length,
        "context_inherited": state.enhanced.inherited,
        "enhanced_query": state.enhanced.query,
        "entity": state.resolved_entity,
        "fragments": len(state.scored),
      },
    )
    return replace(state, response=response)

  # ============================================================
  # 辅助
  # ============================================================

  def _fail(self, state: QueryState, reason: str) -> QueryState:
    return replace(state, response=fallback_response(
      state.language, state.category, state.request_type, self.config.agent_name, reason,
    ))

  def _remember(self, state: QueryState, response: UnifiedResponse) -> None:
    """本轮问答写入短期记忆（尽力而为）"""
    if self._memory is None or state.session_id is None:
      return
    self._memory.record(
      role="user",
      content=state.query,
      session_id=state.session_id,
      request_type=state.request_type,
      entity=state.resolved_entity,
    )
    self._memory.record(
      role="assistant",
      content=response.plain_text,
      session_id=state.session_id,
      emotion=response.emotion.value,
      request_type=state.request_type,
      entity=state.resolved_entity,
    )
