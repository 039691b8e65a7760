"""
上下文改写测试

核心预期：
- 省略句式或不足 10 字符的查询判为短查询；
- 短查询从记忆继承实体和子话题后按模板改写；
- 查询自己提到的实体优先于继承值；
- 没有可继承的信息时原样返回，不会凭空补出实体。
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
  sys.path.insert(0, str(project_root))

from memory import MemoryConfig, MemoryPersistence, ShortTermMemory
from query_router import ContextualQueryEnhancer, is_short_context_query, render_query


def _make_memory() -> ShortTermMemory:
  return ShortTermMemory(
    MemoryConfig(db_path=":memory:"), MemoryPersistence(":memory:"), clock=lambda: 1_000.0,
  )


@pytest.mark.parametrize("query,expected", [
  ("土曜は？", True),
  ("日曜日はどうですか、混んでいますか", True),
  ("sainoの方はどうなっていますか", True),
  ("そっちの料金を教えてください", True),
  ("What about weekends?", True),
  ("短い", True),
  ("エンジニアカフェの方で！", True),
  ("エンジニアカフェの営業時間を教えてください", False),
  ("福岡市内でおすすめのコワーキングスペースを教えて", False),
  ("How much does it cost to use the meeting room?", False),
  ("", False),
])
def test_is_short_context_query(query: str, expected: bool) -> None:
  assert is_short_context_query(query) is expected


def test_inherits_entity_and_day_implies_hours() -> None:
  memory = _make_memory()
  memory.record("user", "エンジニアカフェについて教えて", session_id="s1")
  memory.record("assistant", "エンジニアカフェはコワーキングスペースです。", session_id="s1")

  enhanced = ContextualQueryEnhancer(memory).enhance("土曜は？", "ja", "s1")
  assert enhanced.short_context
  assert enhanced.inherited
  assert enhanced.entity == "engineer"
  assert enhanced.request_type == "hours"
  assert "エンジニアカフェ" in enhanced.query
  assert "営業時間" in enhanced.query
  assert "土曜" in enhanced.query
  assert enhanced.original == "土曜は？"


def test_own_entity_wins_and_request_type_is_inherited() -> None:
  memory = _make_memory()
  memory.record("user", "エンジニアカフェの料金は？", session_id="s1", request_type="price")

  enhanced = ContextualQueryEnhancer(memory).enhance("sainoの方は？", "ja", "s1")
  assert enhanced.entity == "saino"
  assert enhanced.request_type == "price"
  assert enhanced.query == "sainoカフェの料金 価格"


def test_english_template() -> None:
  memory = _make_memory()
  memory.record("user", "Where is Engineer Cafe?", session_id="s1", request_type="location")
  enhanced = ContextualQueryEnhancer(memory).enhance("and saino?", "en", "s1")
  assert enhanced.query == "Saino Cafe location access"


def test_no_inheritance_passes_through() -> None:
  enhancer = ContextualQueryEnhancer(_make_memory())
  enhanced = enhancer.enhance("土曜は？", "ja", "empty-session")
  assert enhanced.query == "土曜は？"
  assert not enhanced.inherited
  assert enhanced.entity is None


def test_no_session_or_memory_passes_through() -> None:
  memory = _make_memory()
  memory.record("user", "エンジニアカフェ", session_id="s1")
  assert ContextualQueryEnhancer(memory).enhance("土曜は？", "ja", None).query == "土曜は？"
  assert ContextualQueryEnhancer(None).enhance("土曜は？", "ja", "s1").query == "土曜は？"


def test_long_query_is_not_rewritten() -> None:
  memory = _make_memory()
  memory.record("user", "sainoカフェについて", session_id="s1")
  query = "福岡市内でおすすめのコワーキングスペースを教えて"
  enhanced = ContextualQueryEnhancer(memory).enhance(query, "ja", "s1")
  assert enhanced.query == query
  assert not enhanced.short_context


def test_render_query_without_entity_keeps_query() -> None:
  assert render_query("土曜は？", "hours", None, "ja") == "土曜は？ 営業時間"
  assert render_query("それは？", None, None, "ja") == "それは？"
  assert render_query("それは？", None, "saino", "ja") == "sainoカフェ それは？"
