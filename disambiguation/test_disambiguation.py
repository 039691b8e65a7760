"""
消歧测试

核心预期：
- 只提到「カフェ」/「会議室」且没有区分线索时判为有歧义；
- 澄清回复以 [surprised] 开头并写入澄清记录；
- 「另一个」追问回答未被选过的选项，然后关闭记录；
- 没有澄清记录时再次明确地请求澄清，而不是猜测。
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
  sys.path.insert(0, str(project_root))

from disambiguation import (
  CAFE_AMBIGUITY,
  MEETING_ROOM_AMBIGUITY,
  ClarificationRecord,
  DisambiguationManager,
  canned_answer,
  detect_ambiguity,
  is_other_option_query,
)
from emotion import Emotion
from memory import MemoryConfig, MemoryPersistence, ShortTermMemory


class FakeClock:
  def __init__(self, start: float = 1_000_000.0) -> None:
    self.value = start

  def __call__(self) -> float:
    return self.value

  def advance(self, seconds: float) -> None:
    self.value += seconds


def _make_memory(clock: FakeClock) -> ShortTermMemory:
  return ShortTermMemory(
    MemoryConfig(db_path=":memory:"), MemoryPersistence(":memory:"), clock=clock,
  )


@pytest.mark.parametrize("query,expected", [
  ("カフェの営業時間について教えて", CAFE_AMBIGUITY),
  ("what time does the cafe open?", CAFE_AMBIGUITY),
  ("エンジニアカフェの営業時間", None),
  ("sainoカフェのメニュー", None),
  ("カフェで作業できますか", None),
  ("会議室を使いたい", MEETING_ROOM_AMBIGUITY),
  ("2階の会議室の料金", None),
  ("地下の会議室", None),
  ("営業時間は？", None),
])
def test_detect_ambiguity(query: str, expected) -> None:
  assert detect_ambiguity(query) == expected


def test_other_option_patterns() -> None:
  assert is_other_option_query("もう一つの方は？")
  assert is_other_option_query("What about the other one?")
  assert not is_other_option_query("sainoカフェの方で")


@pytest.mark.parametrize("query", [
  "会議室を予約する他の方法はありますか？",
  "他の方法で支払えますか",
  "別の方向から行けますか",
  "もう一つ質問があります",
  "Is there the other way to get in?",
  "地下のもう一つの方は？",
])
def test_other_option_ignores_ordinary_questions(query: str) -> None:
  assert not is_other_option_query(query)


def test_clarify_records_pending_choice() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  manager = DisambiguationManager(memory)

  response = manager.clarify(CAFE_AMBIGUITY, "ja", session_id="s1", request_type="hours")
  assert response.text.startswith("[surprised]")
  assert response.emotion == Emotion.SURPRISED
  assert "エンジニアカフェ" in response.text
  assert "sainoカフェ" in response.text
  assert response.metadata.confidence == 0.9
  assert response.metadata.sources == ("clarification_system",)

  record = manager.latest_record("s1")
  assert record is not None
  assert record.options == ("engineer", "saino")
  assert record.request_type == "hours"


def test_other_option_answers_the_unnamed_choice() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  manager = DisambiguationManager(memory)

  memory.record("user", "カフェの営業時間について教えて", session_id="s1", request_type="hours")
  manager.clarify(CAFE_AMBIGUITY, "ja", session_id="s1", request_type="hours")
  clock.advance(5)
  memory.record("user", "sainoカフェの方で", session_id="s1", entity="saino", request_type="hours")
  clock.advance(5)

  response = manager.resolve_other_option("もう一つの方は？", "ja", "s1")
  assert response.text.startswith("[relaxed]")
  assert "9:00〜22:00" in response.text
  assert response.metadata.processing_info["resolved_entity"] == "engineer"
  # 解决后记录关闭
  assert manager.latest_record("s1") is None


def test_other_option_without_record_asks_again() -> None:
  manager = DisambiguationManager(_make_memory(FakeClock()))
  response = manager.resolve_other_option("もう一つの方は？", "ja", "nobody")
  assert response.emotion == Emotion.SURPRISED
  assert response.metadata.sources == ("clarification_system",)
  assert response.metadata.category == "general-clarification-needed"


def test_other_option_after_expiry_asks_again() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  manager = DisambiguationManager(memory)
  manager.clarify(CAFE_AMBIGUITY, "en", session_id="s1")
  memory.record("user", "Saino Cafe please", session_id="s1", entity="saino")

  clock.advance(181)
  response = manager.resolve_other_option("the other one?", "en", "s1")
  assert response.metadata.category == "general-clarification-needed"


def test_other_option_without_any_choice_repeats_the_question() -> None:
  clock = FakeClock()
  memory = _make_memory(clock)
  manager = DisambiguationManager(memory)
  manager.clarify(MEETING_ROOM_AMBIGUITY, "ja", session_id="s1")

  response = manager.resolve_other_option("もう片方は？", "ja", "s1")
  assert response.emotion == Emotion.SURPRISED
  assert "有料会議室" in response.text
  assert "地下MTGスペース" in response.text


def test_record_round_trip_and_validation() -> None:
  record = ClarificationRecord("cafe", ("engineer", "saino"), "s1", 10.0, "price")
  assert ClarificationRecord.from_dict(record.to_dict()) == record
  with pytest.raises(ValueError):
    ClarificationRecord.from_dict({"type": "cafe", "options": ["engineer"]})


def test_canned_answer_falls_back_to_general() -> None:
  assert "12:00〜17:00" in canned_answer("saino", "hours", "ja")
  assert canned_answer("saino", "wifi", "en").startswith("Saino Cafe")
  assert canned_answer("engineer", "access", "ja") == canned_answer("engineer", "location", "ja")
  assert canned_answer("unknown", "hours", "ja") is None
