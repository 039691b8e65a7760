"""
回答生成与统一回复测试

核心预期：
- 子话题查询使用限定模板，其余使用开放式模板；
- 后处理去掉空行并合并相邻的情绪标记；
- 生成结果缺少标记时按正文推断情绪（默认 relaxed），自带标记时保留；
- 模型异常、超时、空输出都降级为 sad 道歉回复（置信度 0.3）；
- 统一回复可以转换为语音合成与形象控制请求。
"""

import asyncio
import sys
from pathlib import Path

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
  sys.path.insert(0, str(project_root))

from emotion import Emotion
from langchain_wrapper import (
  ResponseSynthesizer,
  UnifiedResponse,
  collapse_adjacent_markers,
  fallback_response,
  recall_mode,
  remove_empty_lines,
)


class SlowChatModel(FakeListChatModel):
  async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs):
    await asyncio.sleep(0.5)
    return await super()._agenerate(messages, stop=stop, run_manager=run_manager, **kwargs)


class BrokenChatModel(FakeListChatModel):
  def _call(self, *args, **kwargs) -> str:
    raise RuntimeError("model down")


def _synthesize(synthesizer: ResponseSynthesizer, **kwargs) -> UnifiedResponse:
  kwargs.setdefault("query", "エンジニアカフェの営業時間は？")
  kwargs.setdefault("context", "エンジニアカフェの営業時間は9:00〜22:00です。")
  kwargs.setdefault("language", "ja")
  kwargs.setdefault("request_type", "hours")
  return asyncio.run(synthesizer.synthesize(**kwargs))


# ============================================================
# 提示词
# ============================================================

def test_scoped_prompt_names_the_topic() -> None:
  prompt = ResponseSynthesizer().build_prompt(
    "sainoの営業時間は？", "ランチ12:00〜17:00", "hours", "ja",
  )
  assert "営業時間のみを抽出" in prompt
  assert "sainoの営業時間は？" in prompt
  assert "ランチ12:00〜17:00" in prompt
  assert "[relaxed]" in prompt


def test_open_prompt_for_unscoped_queries() -> None:
  prompt = ResponseSynthesizer().build_prompt("What is this place?", "A cafe.", None, "en")
  assert prompt.startswith("Answer the question using the provided information")
  assert "Question: What is this place?" in prompt


def test_topic_label_defaults() -> None:
  synthesizer = ResponseSynthesizer()
  assert synthesizer.topic_label("price", "en") == "pricing information"
  assert synthesizer.topic_label(None, "ja") == "要求された情報"
  assert synthesizer.topic_label("unknown", "en") == "requested information"


# ============================================================
# 后处理
# ============================================================

def test_remove_empty_lines() -> None:
  assert remove_empty_lines("a\n\n  \nb") == "a\nb"


@pytest.mark.parametrize("raw,expected", [
  ("[relaxed][happy]営業中です", "[relaxed]営業中です"),
  ("[happy] [sad]ok", "[happy]ok"),
  ("[note][relaxed]keep", "[note][relaxed]keep"),
  ("[relaxed]no change", "[relaxed]no change"),
])
def test_collapse_adjacent_markers(raw: str, expected: str) -> None:
  assert collapse_adjacent_markers(raw) == expected


@pytest.mark.parametrize("query,mode", [
  ("さっき何を聞いたっけ？", "question"),
  ("What did you say before?", "answer"),
  ("前の話を覚えてる？", "general"),
])
def test_recall_mode(query: str, mode: str) -> None:
  assert recall_mode(query) == mode


# ============================================================
# 生成
# ============================================================

def test_generated_text_without_marker_gets_relaxed() -> None:
  model = FakeListChatModel(responses=["\n営業時間は9:00〜22:00です。\n\n"])
  response = _synthesize(ResponseSynthesizer(model=model), emotion=Emotion.RELAXED)
  assert response.text == "[relaxed]営業時間は9:00〜22:00です。"
  assert response.metadata.sources == ("knowledge_base",)


def test_generated_marker_is_kept_and_duplicates_removed() -> None:
  model = FakeListChatModel(responses=["[happy][relaxed]本日は22:00まで営業しています。"])
  response = _synthesize(ResponseSynthesizer(model=model), emotion=Emotion.RELAXED)
  assert response.text == "[happy]本日は22:00まで営業しています。"
  assert response.emotion == Emotion.HAPPY


def test_extractive_answer_without_model() -> None:
  response = _synthesize(
    ResponseSynthesizer(),
    context="営業時間は9:00〜22:00です。休館日は最終月曜日です。住所は天神です。",
  )
  assert response.text == "[relaxed]営業時間は9:00〜22:00です。休館日は最終月曜日です。"


@pytest.mark.parametrize("model,reason", [
  (BrokenChatModel(responses=["unused"]), "generation_error"),
  (FakeListChatModel(responses=["[relaxed]"]), "empty_generation"),
])
def test_generation_failures_fall_back(model, reason: str) -> None:
  response = _synthesize(ResponseSynthesizer(model=model))
  assert response.text.startswith("[sad]")
  assert response.metadata.confidence == 0.3
  assert response.metadata.processing_info["fallback_reason"] == reason


def test_generation_timeout_falls_back() -> None:
  synthesizer = ResponseSynthesizer(model=SlowChatModel(responses=["late"]), timeout_seconds=0.01)
  response = _synthesize(synthesizer)
  assert response.is_fallback
  assert response.metadata.processing_info["fallback_reason"] == "generation_timeout"


def test_empty_context_falls_back() -> None:
  response = _synthesize(ResponseSynthesizer(), context="   ")
  assert response.is_fallback


def test_custom_postprocessor_is_applied() -> None:
  model = FakeListChatModel(responses=["[relaxed]Open until 22:00."])
  synthesizer = ResponseSynthesizer(model=model).add_postprocessor(lambda s: s.replace("22:00", "10 pm"))
  response = _synthesize(synthesizer, language="en")
  assert response.text == "[relaxed]Open until 10 pm."


def test_recall_without_history() -> None:
  response = asyncio.run(ResponseSynthesizer().recall("What did I ask?", "", "en", has_history=False))
  assert response.text == "[relaxed]I don't have any previous conversation history to reference."
  assert response.metadata.sources == ("memory",)


def test_recall_with_history_uses_model() -> None:
  model = FakeListChatModel(responses=["You asked about the opening hours."])
  response = asyncio.run(ResponseSynthesizer(model=model).recall(
    "What did I ask?", "User: opening hours?", "en",
  ))
  assert response.text == "[relaxed]You asked about the opening hours."
  assert response.metadata.processing_info["recall_mode"] == "question"


# ============================================================
# 统一回复
# ============================================================

def test_unified_response_normalizes_markers() -> None:
  response = UnifiedResponse.create("[curious]本当ですか？[happy]", "ja", confidence=1.7)
  assert response.text == "[surprised]本当ですか？"
  assert response.emotion == Emotion.SURPRISED
  assert response.metadata.confidence == 1.0


def test_unified_response_kind_fallback() -> None:
  assert UnifiedResponse.create("エラーです", "ja", kind="error").emotion == Emotion.SAD
  assert UnifiedResponse.create("どちらですか", "ja", kind="clarification").emotion == Emotion.SURPRISED
  assert UnifiedResponse.create("こんにちは", "ja").emotion == Emotion.RELAXED


def test_downstream_requests() -> None:
  response = UnifiedResponse.create(
    "[happy]ようこそ！", "ja", agent_name="Concierge", sources=["knowledge_base"],
  )
  assert response.to_voice_request("s1") == {
    "text": "ようこそ！",
    "language": "ja",
    "emotion": "happy",
    "session_id": "s1",
    "agent_name": "Concierge",
  }
  assert response.to_character_request() == {
    "emotion": "happy", "text": "ようこそ！", "agent_name": "Concierge",
  }
  assert response.to_dict()["metadata"]["sources"] == ["knowledge_base"]


def test_fallback_response_shape() -> None:
  response = fallback_response("en", reason="no_results")
  assert response.text.startswith("[sad]I'm sorry")
  assert response.is_fallback
  assert response.metadata.confidence == 0.3
  assert response.metadata.processing_info == {"fallback_reason": "no_results"}
  assert fallback_response("fr").metadata.language == "ja"


def test_unmarked_apology_is_tagged_sad() -> None:
  model = FakeListChatModel(responses=["申し訳ありませんが、その情報は見つかりませんでした。"])
  response = _synthesize(ResponseSynthesizer(model=model))
  assert response.text.startswith("[sad]申し訳ありません")
  assert response.emotion == Emotion.SAD
  assert not response.is_fallback
