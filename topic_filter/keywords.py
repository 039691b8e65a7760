"""
子话题关键词表
每个子话题按语言维护 include / exclude 两组关键词（小写比较）
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class KeywordPolicy:
  include: tuple[str, ...]
  exclude: tuple[str, ...]


REQUEST_TYPE_KEYWORDS: dict[str, dict[str, KeywordPolicy]] = {
  "hours": {
    "ja": KeywordPolicy(
      include=(
        "営業時間", "時間", "ランチタイム", "ディナータイム", "午前", "午後", "曜日",
        "定休日", "休業日", "休館日", "オープン", "クローズ", "開店", "閉店", "時から", "時まで",
      ),
      exclude=(
        "メニュー", "席数", "設備", "電話", "tel", "住所", "アクセス", "予約", "料金", "価格",
        "wi-fi", "wifi",
      ),
    ),
    "en": KeywordPolicy(
      include=(
        "hours", "time", "lunch", "dinner", "open", "close", "closed", "holiday", "day off",
        "from", "until", "am", "pm",
      ),
      exclude=(
        "menu", "seats", "facilities", "phone", "tel", "address", "access", "reservation",
        "price", "fee", "wifi",
      ),
    ),
  },
  "price": {
    "ja": KeywordPolicy(
      include=(
        "料金", "価格", "円", "無料", "メニュー", "ドリンク", "フード", "コース", "セット",
        "値段", "費用", "チャージ",
      ),
      exclude=(
        "営業時間", "時間", "定休日", "席数", "設備", "電話", "住所", "アクセス", "予約方法",
        "有料会議室", "2階会議室", "会議室料金", "有料スペース", "会議室利用料金", "1室あたり",
        "有料", "990円", "1,980円", "平日", "土日祝",
      ),
    ),
    "en": KeywordPolicy(
      include=(
        "price", "cost", "fee", "charge", "yen", "free", "menu", "drink", "food", "course", "set",
      ),
      exclude=(
        "hours", "time", "closed", "seats", "facilities", "phone", "address", "access",
        "how to book", "paid meeting room", "2f meeting room", "meeting room fee", "paid space",
        "meeting room usage fee", "per room", "paid", "990 yen", "1,980 yen",
      ),
    ),
  },
  "location": {
    "ja": KeywordPolicy(
      include=(
        "場所", "住所", "アクセス", "階", "天神", "福岡市", "中央区", "ビル", "フロア",
        "併設", "隣接", "エンジニアカフェ内",
      ),
      exclude=("営業時間", "料金", "メニュー", "設備詳細", "予約"),
    ),
    "en": KeywordPolicy(
      include=(
        "location", "address", "access", "floor", "tenjin", "fukuoka", "building", "inside",
        "adjacent", "attached",
      ),
      exclude=("hours", "price", "menu", "facility details", "reservation"),
    ),
  },
  "booking": {
    "ja": KeywordPolicy(
      include=(
        "予約", "申し込み", "申込", "web", "オンライン", "当日", "事前", "必要", "不要",
        "方法", "手続き",
      ),
      exclude=("営業時間", "料金詳細", "メニュー", "設備一覧"),
    ),
    "en": KeywordPolicy(
      include=(
        "booking", "reservation", "reserve", "apply", "online", "web", "advance", "required",
        "method", "how to",
      ),
      exclude=("hours", "price details", "menu", "facility list"),
    ),
  },
  "facility": {
    "ja": KeywordPolicy(
      include=(
        "設備", "施設", "wi-fi", "wifi", "電源", "コンセント", "席", "スペース", "会議室",
        "テーブル", "カウンター", "個室", "利用できる", "完備",
      ),
      exclude=("営業時間", "料金表", "予約手順", "住所"),
    ),
    "en": KeywordPolicy(
      include=(
        "facility", "facilities", "equipment", "wifi", "power", "outlet", "seats", "space",
        "room", "table", "counter", "private", "available",
      ),
      exclude=("hours", "price list", "booking process", "address"),
    ),
  },
  "access": {
    "ja": KeywordPolicy(
      include=(
        "アクセス", "行き方", "道順", "最寄り", "駅", "徒歩", "分", "出口", "地下鉄", "バス",
        "天神", "場所", "住所",
      ),
      exclude=("営業時間", "料金", "メニュー", "設備", "予約"),
    ),
    "en": KeywordPolicy(
      include=(
        "access", "directions", "how to get", "nearest", "station", "walk", "minutes", "exit",
        "subway", "bus", "location", "address",
      ),
      exclude=("hours", "price", "menu", "facilities", "reservation"),
    ),
  },
  "wifi": {
    "ja": KeywordPolicy(
      include=(
        "wi-fi", "wifi", "インターネット", "ネット", "無線", "接続", "ワイファイ", "通信", "電波",
      ),
      exclude=("営業時間", "料金表", "メニュー", "予約", "場所", "住所", "席数", "定休日"),
    ),
    "en": KeywordPolicy(
      include=(
        "wi-fi", "wifi", "internet", "wireless", "connection", "network", "online", "connectivity",
      ),
      exclude=(
        "hours", "price list", "menu", "reservation", "location", "address", "seats",
        "closed days",
      ),
    ),
  },
}


def keyword_policy(request_type: str, language: str) -> Optional[KeywordPolicy]:
  """取得关键词策略，未定义的子话题返回 None"""
  by_language = REQUEST_TYPE_KEYWORDS.get(request_type)
  if by_language is None:
    return None
  return by_language.get(language, by_language["ja"])
