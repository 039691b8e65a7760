"""
短期记忆管理器
追加式、带过期时间的对话日志，提供最近轮次读取与上下文继承推导
"""

import logging
import sqlite3
import time
import uuid
from collections import Counter
from typing import Any, Callable, Optional

from .config import MemoryConfig, TURN_KEY_PREFIX, CLARIFICATION_KEY_PREFIX
from .extraction import detect_entity, extract_request_type
from .formatter import format_context
from .models import ConversationTurn, MemoryContext
from .store import MemoryPersistence

logger = logging.getLogger(__name__)


def _new_key(prefix: str, now: float) -> str:
  # 同一毫秒内的并发写入靠随机后缀区分
  return f"{prefix}{int(now * 1000)}_{uuid.uuid4().hex[:8]}"


class ShortTermMemory:
  """
  短期记忆

  职责：
  - 追加对话轮次（写失败只记录日志，不影响主流程）
  - 读取未过期的最近轮次，旧 → 新
  - 即时推导 MemoryContext（继承实体 / 子话题）
  - 保存和读取澄清记录（与轮次共享 TTL）

  进程内对象本身无状态，所有状态都在持久化层。
  存储不可用时所有读取返回空，相当于无状态运行。
  """

  def __init__(
    self,
    config: MemoryConfig = MemoryConfig(),
    persistence: Optional[MemoryPersistence] = None,
    clock: Callable[[], float] = time.time,
  ):
    """
    初始化短期记忆

    Args:
      config: 短期记忆配置
      persistence: 持久化层（不传则按 config.db_path 新建）
      clock: 时间源（epoch 秒），测试时可注入
    """
    self._config = config
    self._clock = clock
    self._persistence: Optional[MemoryPersistence] = persistence
    if self._persistence is None:
      try:
        self._persistence = MemoryPersistence(config.db_path)
      except (sqlite3.Error, OSError) as e:
        logger.error("短期记忆存储初始化失败，降级为无状态: %s", e)
        self._persistence = None

  @property
  def config(self) -> MemoryConfig:
    return self._config

  @property
  def available(self) -> bool:
    return self._persistence is not None

  def now(self) -> float:
    return self._clock()

  # ============================================================
  # 轮次读写
  # ============================================================

  def add_turn(self, turn: ConversationTurn) -> bool:
    """
    追加一轮对话（尽力而为）

    Args:
      turn: 对话轮次

    Returns:
      是否写入成功
    """
    if self._persistence is None:
      return False
    try:
      self._persistence.insert(
        agent_name=self._config.agent_name,
        key=_new_key(TURN_KEY_PREFIX, turn.timestamp),
        value=turn.to_dict(),
        ttl_seconds=self._config.ttl_seconds,
        session_id=turn.session_id,
        now=turn.timestamp,
        bound_prefix=TURN_KEY_PREFIX,
        max_entries=self._config.max_entries,
      )
      logger.debug("已记录 %s 轮次 (session=%s)", turn.role, turn.session_id)
      return True
    except Exception as e:
      logger.error("记录对话轮次失败: %s", e)
      return False

  def record(
    self,
    role: str,
    content: str,
    session_id: Optional[str] = None,
    emotion: Optional[str] = None,
    request_type: Optional[str] = None,
    entity: Optional[str] = None,
  ) -> bool:
    """以当前时间构造轮次并追加"""
    return self.add_turn(ConversationTurn(
      role=role,
      content=content,
      timestamp=self.now(),
      session_id=session_id,
      emotion=emotion,
      request_type=request_type,
      entity=entity,
    ))

  def get_recent_turns(
    self,
    limit: Optional[int] = None,
    session_id: Optional[str] = None,
  ) -> list[ConversationTurn]:
    """
    读取最近的未过期轮次

    Args:
      limit: 最多返回条数（取最新的 limit 条）
      session_id: 只取该会话（None 表示整个分区）

    Returns:
      轮次列表，旧 → 新
    """
    if self._persistence is None:
      return []
    try:
      values = self._persistence.query_active(
        agent_name=self._config.agent_name,
        key_prefix=TURN_KEY_PREFIX,
        session_id=session_id,
        now=self.now(),
        limit=limit,
      )
    except Exception as e:
      logger.error("读取最近对话失败: %s", e)
      return []

    turns = [ConversationTurn.from_dict(v) for v in values]
    # 同一会话内按时间戳全序
    turns.sort(key=lambda t: t.timestamp)
    return turns

  # ============================================================
  # 上下文推导
  # ============================================================

  def get_context(
    self,
    session_id: Optional[str],
    language: str = "ja",
    limit: Optional[int] = None,
  ) -> MemoryContext:
    """
    推导当前会话的记忆上下文（每次调用即时计算，不缓存）

    Args:
      session_id: 会话 ID（None 时返回空上下文）
      language: 上下文字符串语言
      limit: 参与推导的最近轮次数

    Returns:
      MemoryContext
    """
    if session_id is None:
      return MemoryContext(context_string=format_context([], language))

    turns = self.get_recent_turns(
      limit=limit or self._config.recent_limit,
      session_id=session_id,
    )
    return MemoryContext(
      recent_turns=tuple(turns),
      inherited_request_type=self._inherit_request_type(turns),
      inherited_entity=self._inherit_entity(turns),
      context_string=format_context(
        turns, language, self._config.content_display_max_length,
      ),
    )

  @staticmethod
  def _inherit_entity(turns: list[ConversationTurn]) -> Optional[str]:
    """
    最近一次出现的实体

    user 轮次优先，且会扫描原文；assistant 轮次只认写入时标注的实体
    （澄清问题的原文会同时提到多个实体）。
    """
    for turn in reversed(turns):
      if turn.role != "user":
        continue
      entity = turn.entity or detect_entity(turn.content)
      if entity:
        return entity
    for turn in reversed(turns):
      if turn.role == "assistant" and turn.entity:
        return turn.entity
    return None

  @staticmethod
  def _inherit_request_type(turns: list[ConversationTurn]) -> Optional[str]:
    for turn in reversed(turns):
      if turn.role != "user":
        continue
      request_type = turn.request_type or extract_request_type(turn.content)
      if request_type:
        return request_type
    return None

  def get_previous_request_type(self, session_id: Optional[str]) -> Optional[str]:
    """上一轮用户问题的子话题"""
    if session_id is None:
      return None
    turns = self.get_recent_turns(
      limit=self._config.recent_limit, session_id=session_id,
    )
    return self._inherit_request_type(turns)

  # ============================================================
  # 澄清记录
  # ============================================================

  def store_clarification(self, value: dict[str, Any], session_id: str) -> bool:
    """保存澄清记录（与轮次同 TTL，过期即视为作废）"""
    if self._persistence is None:
      return False
    try:
      now = self.now()
      self._persistence.insert(
        agent_name=self._config.agent_name,
        key=_new_key(CLARIFICATION_KEY_PREFIX, now),
        value=value,
        ttl_seconds=self._config.ttl_seconds,
        session_id=session_id,
        now=now,
      )
      return True
    except Exception as e:
      logger.error("保存澄清记录失败: %s", e)
      return False

  def latest_clarification(self, session_id: Optional[str]) -> Optional[dict[str, Any]]:
    """该会话最近一条未过期的澄清记录"""
    if self._persistence is None or session_id is None:
      return None
    try:
      values = self._persistence.query_active(
        agent_name=self._config.agent_name,
        key_prefix=CLARIFICATION_KEY_PREFIX,
        session_id=session_id,
        now=self.now(),
        limit=1,
      )
    except Exception as e:
      logger.error("读取澄清记录失败: %s", e)
      return None
    return values[-1] if values else None

  def close_clarifications(self, session_id: str) -> None:
    """关闭该会话的所有澄清记录"""
    if self._persistence is None:
      return
    try:
      self._persistence.delete_prefix(
        self._config.agent_name, CLARIFICATION_KEY_PREFIX, session_id,
      )
    except Exception as e:
      logger.error("关闭澄清记录失败: %s", e)

  # ============================================================
  # 统计与维护
  # ============================================================

  def stats(self, session_id: Optional[str] = None) -> dict[str, Any]:
    """
    记忆统计

    Returns:
      {active_turns, oldest_turn, newest_turn, dominant_emotion, time_span_minutes}
    """
    turns = self.get_recent_turns(session_id=session_id)
    if not turns:
      return {
        "active_turns": 0,
        "oldest_turn": None,
        "newest_turn": None,
        "dominant_emotion": None,
        "time_span_minutes": 0.0,
      }
    oldest = turns[0].timestamp
    newest = turns[-1].timestamp
    return {
      "active_turns": len(turns),
      "oldest_turn": oldest,
      "newest_turn": newest,
      "dominant_emotion": _dominant_emotion(turns),
      "time_span_minutes": (newest - oldest) / 60.0,
    }

  def session_summary(
    self,
    language: str = "ja",
    session_id: Optional[str] = None,
  ) -> str:
    """一句话的会话概况"""
    turns = self.get_recent_turns(session_id=session_id)
    user_count = sum(1 for t in turns if t.role == "user")
    assistant_count = sum(1 for t in turns if t.role == "assistant")

    if user_count == 0 and assistant_count == 0:
      if language == "en":
        return "No active conversation."
      return "アクティブな会話はありません。"

    mood = _dominant_emotion(turns) or "neutral"
    if language == "en":
      return (
        f"Active conversation: {user_count} user messages, "
        f"{assistant_count} responses. Mood: {mood}."
      )
    return f"アクティブな会話: ユーザー{user_count}回、応答{assistant_count}回。雰囲気: {mood}。"

  def cleanup(self) -> int:
    """清理已过期记录，返回删除条数"""
    if self._persistence is None:
      return 0
    try:
      removed = self._persistence.purge_expired(self._config.agent_name, now=self.now())
      logger.debug("短期记忆清理: 删除 %d 条", removed)
      return removed
    except Exception as e:
      logger.error("短期记忆清理失败: %s", e)
      return 0


def _dominant_emotion(turns: list[ConversationTurn]) -> Optional[str]:
  emotions = [t.emotion for t in turns if t.emotion]
  if not emotions:
    return None
  return Counter(emotions).most_common(1)[0][0]
