"""
优先级打分测试

核心预期：
- 输出按 priority_score 非增排列，同输入重复运行顺序一致；
- 料金问题里"エンジニアカフェ無料"片段排在有料会議室之前；
- 各因子落在 0~1。
"""

import random
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
  sys.path.insert(0, str(project_root))

from ranking import (
  PriorityScorer,
  ScorerConfig,
  ScoringWeights,
  context_match_score,
  detect_fragment_entity,
  practical_advice,
  practical_value_score,
  specificity_score,
)
from retrieval import KnowledgeFragment


def _fragments() -> list[KnowledgeFragment]:
  return [
    KnowledgeFragment(
      content="2階の会議室は有料で、1時間1,000円から利用できます。",
      similarity=0.82, category="meeting-room",
    ),
    KnowledgeFragment(
      content="エンジニアカフェのコワーキングスペースは無料で利用できます。",
      similarity=0.78, category="facility-info",
    ),
    KnowledgeFragment(
      content="sainoカフェのランチは12:00〜17:00、ディナーは18:00〜20:30です。",
      similarity=0.75, category="saino-cafe",
    ),
    KnowledgeFragment(
      content="福岡市のエンジニアを応援する施設です。",
      similarity=0.6, category="general",
    ),
  ]


def test_entity_detection() -> None:
  entities = [detect_fragment_entity(f) for f in _fragments()]
  assert entities == ["meeting-room", "engineer-cafe", "saino", "general"]


def test_kana_saino_fragment_is_not_mistaken_for_engineer_cafe() -> None:
  katakana = KnowledgeFragment("サイノカフェはWi-Fi無料、コワーキング利用者も歓迎です。", 0.7, "facility-info")
  hiragana = KnowledgeFragment("さいのカフェのランチは無料のお水付きです。", 0.7, "general")
  assert detect_fragment_entity(katakana) == "saino"
  assert detect_fragment_entity(hiragana) == "saino"


def test_pricing_prefers_free_primary_facility() -> None:
  scorer = PriorityScorer()
  ranked = scorer.score(_fragments(), "料金はいくらですか？", "pricing", "ja")
  assert ranked[0].entity == "engineer-cafe"
  assert ranked[0].relevance_factors.entity_match == 1.0
  meeting = next(r for r in ranked if r.entity == "meeting-room")
  assert meeting.relevance_factors.entity_match == 0.2


def test_order_is_non_increasing_and_deterministic() -> None:
  scorer = PriorityScorer()
  rng = random.Random(7)
  fragments = [
    KnowledgeFragment(content=f"情報{i} 9:00〜22:00 受付", similarity=rng.random())
    for i in range(20)
  ] + _fragments()

  first = scorer.score(fragments, "営業時間を教えて", "business-hours")
  second = scorer.score(list(fragments), "営業時間を教えて", "business-hours")

  scores = [r.priority_score for r in first]
  assert scores == sorted(scores, reverse=True)
  assert [r.content for r in first] == [r.content for r in second]


def test_ties_break_by_similarity_then_input_order() -> None:
  scorer = PriorityScorer()
  same = "同じ内容"
  fragments = [
    KnowledgeFragment(content=same, similarity=0.5, title="a"),
    KnowledgeFragment(content=same, similarity=0.5, title="b"),
  ]
  ranked = scorer.score(fragments, "質問", "general-knowledge")
  assert [r.title for r in ranked] == ["a", "b"]


def test_factor_ranges() -> None:
  assert specificity_score("9:00〜22:00、500円、10名、2階") == 1.0
  assert specificity_score("なし") == 0.5
  assert practical_value_score("受付スタッフにお尋ねください。予約が必要です。方法") == 1.0
  assert context_match_score("anything", "?", "general-knowledge") == 0.0
  assert context_match_score("wifiは無料でインターネットに接続できます", "wifi ある？", "facility-info") >= 0.8


def test_weights_are_configurable() -> None:
  only_similarity = ScoringWeights(
    similarity=1.0, entity_match=0.0, context_match=0.0,
    practical_value=0.0, specificity_score=0.0,
  )
  scorer = PriorityScorer(ScorerConfig(
    default_weights=only_similarity, category_weights={},
  ))
  ranked = scorer.score(_fragments(), "料金", "pricing")
  assert [r.similarity for r in ranked] == [0.82, 0.78, 0.75, 0.6]


def test_practical_advice_triggers() -> None:
  assert "受付" in practical_advice("wifiのパスワードは？", "facility-info", "ja")
  assert practical_advice("where is it", "location", "en") == ""
  assert "staff" in practical_advice("tell me about it", "facility-info", "en")
