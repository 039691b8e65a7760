"""
消歧管理器
每个会话的状态机：Idle → AwaitingClarification → Idle

状态本身就是短期记忆里最近一条未过期的澄清记录：
- 发出澄清问题时写入记录；
- 用户直接说出其中一个选项时按普通查询处理，记录保留；
- 用户说「另一个」时根据中间轮次推断未被提到的选项并直接回答，然后关闭记录；
- 记录过期即回到 Idle。
"""

import logging
from typing import Optional

from emotion import Emotion
from langchain_wrapper.response import UnifiedResponse
from memory.manager import ShortTermMemory
from .knowledge import canned_answer, option_description
from .models import Ambiguity, ClarificationRecord
from .rules import AMBIGUITIES, detect_ambiguity, is_other_option_query

logger = logging.getLogger(__name__)


AGENT_NAME = "ClarificationAgent"
CLARIFICATION_SOURCE = "clarification_system"

_CLARIFY_TEMPLATE = {
  "ja": "お手伝いさせていただきます！どちらについてお聞きでしょうか：\n1. {first}\n2. {second}\n\nお聞かせください！",
  "en": "I'd be happy to help! Are you asking about:\n1. {first}\n2. {second}\n\nPlease let me know which one you're interested in!",
}

_CLARIFY_AGAIN_TEXT = {
  "ja": (
    "申し訳ありません、どちらのことか分かりませんでした。"
    "エンジニアカフェとsainoカフェ、または2階の会議室と地下のMTGスペースのうち、"
    "どれについてお知りになりたいか具体的に教えていただけますか？"
  ),
  "en": (
    "Sorry, I'm not sure which one you mean. "
    "Could you tell me specifically whether you're asking about Engineer Cafe or Saino Cafe, "
    "or the 2F meeting rooms or the basement meeting spaces?"
  ),
}


class DisambiguationManager:
  """
  消歧管理器

  依赖注入的短期记忆保存澄清记录；记忆不可用时仍能发出澄清问题，
  但「另一个」类追问只能再次请求澄清。
  """

  def __init__(self, memory: Optional[ShortTermMemory] = None):
    self._memory = memory

  # ============================================================
  # 检测
  # ============================================================

  @staticmethod
  def detect(query: str) -> Optional[Ambiguity]:
    return detect_ambiguity(query)

  @staticmethod
  def is_other_option(query: str) -> bool:
    return is_other_option_query(query)

  # ============================================================
  # 澄清
  # ============================================================

  def clarify(
    self,
    ambiguity: Ambiguity,
    language: str,
    session_id: Optional[str] = None,
    request_type: Optional[str] = None,
  ) -> UnifiedResponse:
    """
    发出澄清问题并记录待确认状态

    Args:
      ambiguity: 检测到的歧义
      language: 回复语言
      session_id: 会话 ID（None 时不记录）
      request_type: 原问题的子话题（解决「另一个」时沿用）

    Returns:
      surprised 情绪的澄清回复
    """
    lang = language if language in _CLARIFY_TEMPLATE else "ja"
    first, second = ambiguity.options
    text = _CLARIFY_TEMPLATE[lang].format(
      first=option_description(first, lang),
      second=option_description(second, lang),
    )

    if session_id is not None and self._memory is not None:
      record = ClarificationRecord(
        type=ambiguity.type,
        options=ambiguity.options,
        origin_session_id=session_id,
        created_at=self._memory.now(),
        request_type=request_type,
      )
      self._memory.store_clarification(record.to_dict(), session_id)
      logger.info("发出澄清问题: type=%s session=%s", ambiguity.type, session_id)

    return UnifiedResponse.create(
      text=text,
      language=lang,
      emotion=Emotion.SURPRISED,
      agent_name=AGENT_NAME,
      confidence=0.9,
      category=f"{ambiguity.type}-clarification-needed",
      request_type=request_type,
      sources=[CLARIFICATION_SOURCE],
      processing_info={"ambiguity": ambiguity.type, "options": list(ambiguity.options)},
    )

  def clarify_again(self, language: str, request_type: Optional[str] = None) -> UnifiedResponse:
    """找不到澄清记录时，明确地再问一次"""
    lang = language if language in _CLARIFY_AGAIN_TEXT else "ja"
    return UnifiedResponse.create(
      text=_CLARIFY_AGAIN_TEXT[lang],
      language=lang,
      emotion=Emotion.SURPRISED,
      agent_name=AGENT_NAME,
      confidence=0.7,
      category="general-clarification-needed",
      request_type=request_type,
      sources=[CLARIFICATION_SOURCE],
    )

  # ============================================================
  # 「另一个」的解决
  # ============================================================

  def latest_record(self, session_id: Optional[str]) -> Optional[ClarificationRecord]:
    """该会话最近一条未过期的澄清记录；格式错误视为不存在"""
    if self._memory is None or session_id is None:
      return None
    value = self._memory.latest_clarification(session_id)
    if value is None:
      return None
    try:
      return ClarificationRecord.from_dict(value)
    except ValueError as e:
      logger.warning("忽略损坏的澄清记录: %s", e)
      return None

  def named_options(self, record: ClarificationRecord) -> list[str]:
    """澄清之后用户已经明确选过的选项（按用户轮次写入时标注的实体判断）"""
    if self._memory is None:
      return []
    turns = self._memory.get_recent_turns(session_id=record.origin_session_id)
    named: list[str] = []
    for turn in turns:
      if turn.role != "user" or turn.timestamp < record.created_at:
        continue
      if turn.entity in record.options and turn.entity not in named:
        named.append(turn.entity)
    return named

  def resolve_other_option(
    self,
    query: str,
    language: str,
    session_id: Optional[str],
    request_type: Optional[str] = None,
  ) -> UnifiedResponse:
    """
    回答「另一个」类追问

    Args:
      query: 用户查询
      language: 回复语言
      session_id: 会话 ID
      request_type: 查询自身的子话题（为 None 时沿用澄清记录里的）

    Returns:
      未被选过的那个选项的固定回答；无法推断时返回澄清问题
    """
    record = self.latest_record(session_id)
    if record is None:
      logger.info("「另一个」追问没有可用的澄清记录，重新澄清: %r", query)
      return self.clarify_again(language, request_type)

    named = self.named_options(record)
    if len(named) != 1:
      # 一个都没选或两个都选过，无法判断「另一个」
      ambiguity = AMBIGUITIES.get(record.type, Ambiguity(record.type, record.options))
      return self.clarify(ambiguity, language, session_id, record.request_type)

    other = record.options[1] if named[0] == record.options[0] else record.options[0]
    topic = request_type or record.request_type
    lang = language if language in _CLARIFY_TEMPLATE else "ja"
    text = canned_answer(other, topic, lang)
    if text is None:
      return self.clarify_again(language, request_type)

    self._memory.close_clarifications(record.origin_session_id)
    logger.info("「另一个」解析为 %s (已选: %s)", other, named[0])
    return UnifiedResponse.create(
      text=text,
      language=lang,
      emotion=Emotion.RELAXED,
      agent_name=AGENT_NAME,
      confidence=0.85,
      category=f"{record.type}-clarification-resolved",
      request_type=topic,
      sources=[CLARIFICATION_SOURCE],
      processing_info={"resolved_entity": other, "previous_entity": named[0]},
    )
