"""
消歧用的固定知识
回答「另一个选项」时不走检索，直接用这里的实体 × 子话题 × 语言文本
"""

from typing import Optional


# 实体 → 子话题 → 语言 → 文本；"general" 为缺省子话题
CANNED_ANSWERS: dict[str, dict[str, dict[str, str]]] = {
  "engineer": {
    "hours": {
      "ja": "エンジニアカフェの営業時間は9:00〜22:00です。休館日は毎月最終月曜日と年末年始（12/29〜1/3）です。",
      "en": "Engineer Cafe is open from 9:00 to 22:00. It is closed on the last Monday of each month and during the New Year holidays (12/29-1/3).",
    },
    "price": {
      "ja": "エンジニアカフェのコワーキングスペースは無料でご利用いただけます。",
      "en": "The Engineer Cafe coworking space is free to use.",
    },
    "location": {
      "ja": "エンジニアカフェは福岡市中央区天神1-15-30の赤煉瓦文化館にあります。",
      "en": "Engineer Cafe is in the Red Brick Culture Hall at Tenjin 1-15-30, Chuo-ku, Fukuoka.",
    },
    "general": {
      "ja": "エンジニアカフェはITエンジニア向けのコワーキングスペースで、9:00〜22:00まで無料でご利用いただけます。",
      "en": "Engineer Cafe is a coworking space for IT engineers, free to use from 9:00 to 22:00.",
    },
  },
  "saino": {
    "hours": {
      "ja": "sainoカフェの営業時間は、平日がランチ12:00〜17:00、ディナー18:00〜20:30（L.O.20:00）、土日祝は11:00〜20:30です。",
      "en": "Saino Cafe is open on weekdays for lunch 12:00-17:00 and dinner 18:00-20:30 (last order 20:00), and 11:00-20:30 on weekends and holidays.",
    },
    "price": {
      "ja": "sainoカフェは有料のカフェ＆バーです。料金は店頭のメニューをご確認ください。",
      "en": "Saino Cafe is a paid cafe & bar. Please check the menu at the counter for prices.",
    },
    "location": {
      "ja": "sainoカフェはエンジニアカフェと同じ赤煉瓦文化館の1階に併設されています。",
      "en": "Saino Cafe is on the 1st floor of the same Red Brick Culture Hall, next to Engineer Cafe.",
    },
    "general": {
      "ja": "sainoカフェはエンジニアカフェに併設されたカフェ＆バーで、コーヒーや軽食を提供しています。",
      "en": "Saino Cafe is the cafe & bar attached to Engineer Cafe, serving coffee and light meals.",
    },
  },
  "meeting-room": {
    "hours": {
      "ja": "2階の有料会議室はエンジニアカフェの営業時間内（9:00〜22:00）に事前予約制でご利用いただけます。",
      "en": "The paid meeting rooms on 2F can be booked in advance during opening hours (9:00-22:00).",
    },
    "price": {
      "ja": "2階の会議室は有料で、事前予約が必要です。料金は部屋と利用時間によって異なります。",
      "en": "The 2F meeting rooms are paid and require advance booking. Fees depend on the room and duration.",
    },
    "location": {
      "ja": "有料会議室は赤煉瓦文化館の2階にあります。",
      "en": "The paid meeting rooms are on the 2nd floor of the Red Brick Culture Hall.",
    },
    "general": {
      "ja": "2階の有料会議室は事前予約制の個室です。",
      "en": "The 2F meeting rooms are private rooms that require advance booking.",
    },
  },
  "basement": {
    "hours": {
      "ja": "地下のMTGスペースはエンジニアカフェの営業時間内（9:00〜22:00）にご利用いただけます。",
      "en": "The basement meeting spaces are available during Engineer Cafe opening hours (9:00-22:00).",
    },
    "price": {
      "ja": "地下1階のMTGスペースは無料でご利用いただけます。",
      "en": "The B1 meeting spaces are free to use.",
    },
    "location": {
      "ja": "MTGスペースは地下1階にあります。",
      "en": "The meeting spaces are on the basement floor (B1).",
    },
    "general": {
      "ja": "地下のMTGスペースは、カジュアルな打ち合わせに使える無料のスペースです。",
      "en": "The basement meeting spaces are free open spaces for casual meetings.",
    },
  },
}

# 澄清问题里的选项说明
OPTION_DESCRIPTIONS: dict[str, dict[str, str]] = {
  "engineer": {
    "ja": "エンジニアカフェ（コワーキングスペース）",
    "en": "Engineer Cafe (the coworking space)",
  },
  "saino": {
    "ja": "sainoカフェ（併設のカフェ＆バー）",
    "en": "Saino Cafe (the attached cafe & bar)",
  },
  "meeting-room": {
    "ja": "有料会議室（2階）",
    "en": "Paid Meeting Rooms (2F)",
  },
  "basement": {
    "ja": "地下MTGスペース（地下1階）",
    "en": "Basement Meeting Spaces (B1)",
  },
}

# access 与 location 共用，其余子话题按缺省处理
_REQUEST_TYPE_ALIASES = {"access": "location"}


def canned_answer(entity: str, request_type: Optional[str], language: str) -> Optional[str]:
  """
  取固定回答

  Args:
    entity: 实体名
    request_type: 子话题（未知时取 general）
    language: 语言

  Returns:
    文本，未知实体返回 None
  """
  topics = CANNED_ANSWERS.get(entity)
  if topics is None:
    return None
  key = _REQUEST_TYPE_ALIASES.get(request_type or "", request_type or "general")
  texts = topics.get(key) or topics["general"]
  return texts.get(language, texts["ja"])


def option_description(entity: str, language: str) -> str:
  names = OPTION_DESCRIPTIONS.get(entity)
  if not names:
    return entity
  return names.get(language, names["ja"])
