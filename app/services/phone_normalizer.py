"""
電話番号正規化
ユーザー入力の携帯番号をWhatsApp送信用の宛先（91 + 10桁）に変換する
"""

import re
import logging
from typing import Optional

logger = logging.getLogger(__name__)

COUNTRY_CODE = "91"
LOCAL_NUMBER_LENGTH = 10
CANONICAL_LENGTH = len(COUNTRY_CODE) + LOCAL_NUMBER_LENGTH

# 数字は ASCII の 0-9 のみ（他の文字体系の数字は除去する）
_NON_DIGIT = re.compile(r"[^0-9]")


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
    """
    携帯番号を正規化（インド国内番号を前提）

    - 10桁: 国番号 91 を付与
    - 11桁かつ先頭0: 0 を除去して 91 を付与
    - 12桁かつ先頭91: そのまま

    Parameters:
        raw: ユーザー入力の電話番号

    Returns:
        str: 12桁の正規化済み番号（不正な場合はNone）
    """
    if not isinstance(raw, str):
        return None

    digits = _NON_DIGIT.sub("", raw)

    if len(digits) == LOCAL_NUMBER_LENGTH:
        candidate = COUNTRY_CODE + digits
    elif len(digits) == LOCAL_NUMBER_LENGTH + 1 and digits.startswith("0"):
        candidate = COUNTRY_CODE + digits[1:]
    elif len(digits) == CANONICAL_LENGTH and digits.startswith(COUNTRY_CODE):
        candidate = digits
    else:
        logger.debug(f"電話番号の形式が不正です: digits={len(digits)}")
        return None

    # 最終チェック
    if len(candidate) != CANONICAL_LENGTH or not candidate.startswith(COUNTRY_CODE):
        return None

    return candidate
