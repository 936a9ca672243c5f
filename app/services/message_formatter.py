"""
通知メッセージ整形
ユーザーの言語設定に合わせてヘッダー・フッターを付与する
"""

from enum import Enum
from typing import Optional


class Language(str, Enum):
    """対応言語コード"""

    EN = "en"
    HI = "hi"
    MR = "mr"
    GU = "gu"
    BN = "bn"
    PA = "pa"
    TA = "ta"
    TE = "te"
    KN = "kn"
    ML = "ml"


DEFAULT_LANGUAGE = Language.EN

LANGUAGE_NAMES: dict[Language, str] = {
    Language.EN: "English",
    Language.HI: "Hindi",
    Language.MR: "Marathi",
    Language.GU: "Gujarati",
    Language.BN: "Bengali",
    Language.PA: "Punjabi",
    Language.TA: "Tamil",
    Language.TE: "Telugu",
    Language.KN: "Kannada",
    Language.ML: "Malayalam",
}

MESSAGE_PREFIXES: dict[Language, str] = {
    Language.EN: "🏥 Nivrit AI Health Alert",
    Language.HI: "🏥 निवृत्त एआई स्वास्थ्य सतर्कता",
    Language.MR: "🏥 निवृत्त एआई आरोग्य सतर्कता",
    Language.GU: "🏥 નિવૃત્ત એઆઈ આરોગ્ય સતર્કતા",
    Language.BN: "🏥 নিবৃত্ত এআই স্বাস্থ্য সতর্কতা",
    Language.PA: "🏥 ਨਿਵ੍ਰਿਤ ਏਆਈ ਸਿਹਤ ਚੇਤਾਵਨੀ",
    Language.TA: "🏥 நிவிர்த்த ஏஐ சுகாதார எச்சரிக்கை",
    Language.TE: "🏥 నివృత్త్ ఏఐ ఆరోగ్య హెచ్చరిక",
    Language.KN: "🏥 ನಿವೃತ್ತ್ ಏಐ ಆರೋಗ್ಯ ಎಚ್ಚರಿಕೆ",
    Language.ML: "🏥 നിവൃത്ത് ഏഐ ആരോഗ്യ എച്ചരിക",
}

MESSAGE_FOOTERS: dict[Language, str] = {
    Language.EN: "Stay healthy! 💚\n- Nivrit AI Healthcare Team",
    Language.HI: "स्वस्थ रहें! 💚\n- निवृत्त एआई हेल्थकेयर टीम",
    Language.MR: "निरोगी राहा! 💚\n- निवृत्त एआई हेल्थकेयर टीम",
    Language.GU: "સ્વસ્થ રહો! 💚\n- નિવૃત્ત એઆઈ હેલ્થકેર ટીમ",
    Language.BN: "সুস্থ থাকুন! 💚\n- নিবৃত্ত এআই হেলথকেয়ার টিম",
    Language.PA: "ਸਿਹਤਮੰਦ ਰਹੋ! 💚\n- ਨਿਵ੍ਰਿਤ ਏਆਈ ਹੈਲਥਕੇਅਰ ਟੀਮ",
    Language.TA: "வாழ்க்கையில் ஆரோக்கியமாக இருங்கள்! 💚\n- நிவிர்த்த ஏஐ ஹெல்த்கேர் குழு",
    Language.TE: "ఆరోగ్యంగా ఉండండి! 💚\n- నివృత్త్ ఏఐ హెల్త్‌కేర్ బృందం",
    Language.KN: "ಆರೋಗ್ಯವಾಗಿ ಇರಿ! 💚\n- ನಿವೃತ್ತ್ ಏಐ ಹೆಲ್ತ್‌ಕೇರ್ ತಂಡ",
    Language.ML: "ആരോഗ്യമായി ജീവിക്കുക! 💚\n- നിവൃത്ത് ഏഐ ഹെൽത്ത്‌കെയർ ടീം",
}


def resolve_language(code: Optional[str]) -> Language:
    """言語コードを Language に変換（未知のコードは英語）"""
    if not isinstance(code, str):
        return DEFAULT_LANGUAGE
    try:
        return Language(code.strip().lower())
    except ValueError:
        return DEFAULT_LANGUAGE


def language_name(code: Optional[str]) -> str:
    """言語の英語表記を取得"""
    return LANGUAGE_NAMES[resolve_language(code)]


def format_notification_message(
    title: str,
    message: str,
    language_preference: Optional[str] = None,
) -> str:
    """
    通知メッセージを整形

    Parameters:
        title: 通知タイトル
        message: 通知本文
        language_preference: ユーザーの言語設定

    Returns:
        str: 「ヘッダー / タイトル / 本文 / フッター」を空行区切りで連結した文字列
    """
    language = resolve_language(language_preference)
    prefix = MESSAGE_PREFIXES[language]
    footer = MESSAGE_FOOTERS[language]

    return f"{prefix}\n\n📋 {title}\n\n{message}\n\n{footer}"
