"""
短期记忆测试

核心预期：
- 读取只返回未过期轮次，旧 → 新；
- 超出容量上限时最旧的先淘汰；
- 上下文继承取最近提到的实体和子话题；
- 存储不可用时退化为无状态，不抛异常。
"""

import sqlite3
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
  sys.path.insert(0, str(project_root))

from memory import (
  ConversationTurn,
  MemoryConfig,
  MemoryPersistence,
  ShortTermMemory,
  detect_entities,
  detect_entity,
  extract_request_type,
)


class FakeClock:
  def __init__(self, start: float = 1_000_000.0) -> None:
    self.value = start

  def __call__(self) -> float:
    return self.value

  def advance(self, seconds: float) -> None:
    self.value += seconds


def _make_memory(clock: FakeClock, **overrides) -> ShortTermMemory:
  config = MemoryConfig(db_path=":memory:", **overrides)
  return ShortTermMemory(config, MemoryPersistence(":memory:"), clock=clock)


def test_recent_turns_are_oldest_first() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  for text in ("一つ目", "二つ目", "三つ目"):
    memory.record("user", text, session_id="s1")
    clock.advance(1)

  turns = memory.get_recent_turns(session_id="s1")
  assert [t.content for t in turns] == ["一つ目", "二つ目", "三つ目"]

  latest_two = memory.get_recent_turns(limit=2, session_id="s1")
  assert [t.content for t in latest_two] == ["二つ目", "三つ目"]


def test_expired_turns_are_hidden() -> None:
  clock = FakeClock()
  memory = _make_memory(clock, ttl_seconds=180)
  memory.record("user", "古い質問", session_id="s1")
  clock.advance(120)
  memory.record("user", "新しい質問", session_id="s1")
  clock.advance(61)

  contents = [t.content for t in memory.get_recent_turns(session_id="s1")]
  assert contents == ["新しい質問"]

  assert memory.cleanup() == 1


def test_capacity_bound_evicts_oldest() -> None:
  clock = FakeClock()
  memory = _make_memory(clock, max_entries=3)
  for i in range(5):
    memory.record("user", f"turn-{i}", session_id="s1")
    clock.advance(1)

  contents = [t.content for t in memory.get_recent_turns(session_id="s1")]
  assert contents == ["turn-2", "turn-3", "turn-4"]


def test_capacity_bound_falls_back_when_conditional_delete_fails(monkeypatch) -> None:
  def _unsupported(*args, **kwargs):
    raise sqlite3.OperationalError("near \"LIMIT\": syntax error")

  fallback_calls = []
  original_fallback = MemoryPersistence._enforce_bound_fallback

  def _counting_fallback(self, *args, **kwargs):
    fallback_calls.append(args)
    return original_fallback(self, *args, **kwargs)

  monkeypatch.setattr(MemoryPersistence, "_enforce_bound_atomic", staticmethod(_unsupported))
  monkeypatch.setattr(MemoryPersistence, "_enforce_bound_fallback", _counting_fallback)

  clock = FakeClock()
  memory = _make_memory(clock, max_entries=3)
  for i in range(5):
    memory.record("user", f"turn-{i}", session_id="s1")
    clock.advance(1)

  assert len(fallback_calls) == 5
  contents = [t.content for t in memory.get_recent_turns(session_id="s1")]
  assert contents == ["turn-2", "turn-3", "turn-4"]


def test_sessions_are_isolated() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  memory.record("user", "エンジニアカフェについて", session_id="a")
  memory.record("user", "sainoについて", session_id="b")

  assert memory.get_context("a").inherited_entity == "engineer"
  assert memory.get_context("b").inherited_entity == "saino"


def test_context_inherits_entity_and_request_type() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  memory.record("user", "エンジニアカフェの営業時間は？", session_id="s1")
  clock.advance(1)
  memory.record("assistant", "[relaxed]9:00〜22:00です。", session_id="s1", entity="engineer")

  context = memory.get_context("s1", language="ja")
  assert context.inherited_entity == "engineer"
  assert context.inherited_request_type == "hours"
  assert "ユーザー: エンジニアカフェの営業時間は？" in context.context_string
  assert memory.get_previous_request_type("s1") == "hours"


def test_context_without_session_is_empty() -> None:
  memory = _make_memory(FakeClock())
  context = memory.get_context(None, language="en")
  assert context.is_empty
  assert context.inherited_entity is None


def test_clarification_record_shares_ttl() -> None:
  clock = FakeClock()
  memory = _make_memory(clock, ttl_seconds=180)
  memory.store_clarification({"type": "cafe", "options": ["engineer", "saino"]}, "s1")
  assert memory.latest_clarification("s1")["type"] == "cafe"
  assert memory.latest_clarification("other") is None

  clock.advance(181)
  assert memory.latest_clarification("s1") is None


def test_unavailable_store_degrades_to_stateless() -> None:
  class BrokenPersistence(MemoryPersistence):
    def insert(self, *args, **kwargs):
      raise RuntimeError("disk full")

    def query_active(self, *args, **kwargs):
      raise RuntimeError("disk full")

  memory = ShortTermMemory(
    MemoryConfig(db_path=":memory:"), BrokenPersistence(":memory:"),
  )
  assert memory.record("user", "こんにちは", session_id="s1") is False
  assert memory.get_recent_turns(session_id="s1") == []
  assert memory.get_context("s1").inherited_entity is None


def test_session_summary_and_stats() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  assert memory.session_summary("en") == "No active conversation."

  memory.record("user", "hello", session_id="s1")
  clock.advance(60)
  memory.record("assistant", "[happy]hi", session_id="s1", emotion="happy")

  stats = memory.stats("s1")
  assert stats["active_turns"] == 2
  assert stats["dominant_emotion"] == "happy"
  assert stats["time_span_minutes"] == 1.0
  assert "1 user messages" in memory.session_summary("en", session_id="s1")


def test_turn_round_trip_preserves_fields() -> None:
  turn = ConversationTurn(
    role="user", content="x", timestamp=1.5, session_id="s",
    request_type="price", entity="saino",
  )
  assert ConversationTurn.from_dict(turn.to_dict()) == turn


def test_entity_and_request_type_extraction() -> None:
  assert detect_entity("サイノカフェの営業時間は？") == "saino"
  assert detect_entities("エンジニアカフェとsainoの違い") == ["engineer", "saino"]
  assert detect_entity("トイレはどこ？") is None
  assert extract_request_type("サイノカフェの営業時間は？") == "hours"
  assert extract_request_type("How much does it cost?") == "price"
  assert extract_request_type("Is there wifi?") == "wifi"
  assert extract_request_type("会議室の予約方法") == "booking"
  assert extract_request_type("土曜は？") is None
