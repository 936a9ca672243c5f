"""
Azure OpenAI連携サービス
ヘルスケアチャットの応答生成
"""

import re
import logging
from typing import Optional

from openai import AzureOpenAI

from app.config import settings
from app.services.message_formatter import language_name

# ============================================
# ログ設定
# ============================================
logger = logging.getLogger(__name__)

HINGLISH = "hinglish"

# Unicode ブロック → 言語コード（デーヴァナーガリーは別扱い）
_SCRIPT_LANGUAGES = [
    (re.compile(r"[\u0A80-\u0AFF]"), "gu"),
    (re.compile(r"[\u0980-\u09FF]"), "bn"),
    (re.compile(r"[\u0A00-\u0A7F]"), "pa"),
    (re.compile(r"[\u0B80-\u0BFF]"), "ta"),
    (re.compile(r"[\u0C00-\u0C7F]"), "te"),
    (re.compile(r"[\u0C80-\u0CFF]"), "kn"),
    (re.compile(r"[\u0D00-\u0D7F]"), "ml"),
]
_DEVANAGARI = re.compile(r"[\u0900-\u097F]")
_MARATHI_WORDS = {"मी", "तू", "आम्ही", "तुम्ही", "माझा", "तुझा", "आमचा", "तुमचा"}
_HINGLISH_WORDS = {
    "hai", "hain", "nahi", "kyun", "kaise", "kya", "main",
    "tum", "aap", "mera", "tera", "hamara", "tumhara",
}
_PUNCTUATION = ".,!?;:()\"'\u0964"
_MARKDOWN_SYMBOLS = re.compile(r"\*+|#+")


# ============================================
# カスタム例外
# ============================================
class AIServiceError(Exception):
    """AI応答生成のエラー"""

    pass


# ============================================
# ユーティリティ関数
# ============================================
def validate_env_variables() -> bool:
    """
    環境変数の検証

    Returns:
        bool: 環境変数が有効な場合True
    """
    if not settings.AZURE_OPENAI_API_KEY:
        logger.warning("AZURE_OPENAI_API_KEY が設定されていません")
        return False
    if not settings.AZURE_OPENAI_ENDPOINT:
        logger.warning("AZURE_OPENAI_ENDPOINT が設定されていません")
        return False
    if not settings.AZURE_OPENAI_DEPLOYMENT_NAME:
        logger.warning("AZURE_OPENAI_DEPLOYMENT_NAME が設定されていません")
        return False
    return True


def _create_openai_client() -> AzureOpenAI:
    """Azure OpenAIクライアントを作成"""
    return AzureOpenAI(
        api_key=settings.AZURE_OPENAI_API_KEY,
        api_version=settings.AZURE_OPENAI_API_VERSION,
        azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
    )


def _tokenize(message: str) -> set:
    return {word.strip(_PUNCTUATION) for word in message.split()}


def detect_language(message: str) -> str:
    """
    メッセージの文字種から言語を推定

    Returns:
        str: 言語コード（"hinglish" を含む）、判定できない場合は "en"
    """
    if _DEVANAGARI.search(message):
        words = _tokenize(message)
        return "mr" if words & _MARATHI_WORDS else "hi"

    for pattern, code in _SCRIPT_LANGUAGES:
        if pattern.search(message):
            return code

    words = {word.lower() for word in _tokenize(message)}
    if words & _HINGLISH_WORDS:
        return HINGLISH

    return "en"


def clean_response_text(text: str) -> str:
    """マークダウン記号を除去"""
    return _MARKDOWN_SYMBOLS.sub("", text).strip()


def _language_label(language: str) -> str:
    if language == HINGLISH:
        return "Hinglish (mix of Hindi and English)"
    return language_name(language)


def _build_prompt(message: str, language: str) -> str:
    return f"""You are Nivrit AI, a friendly healthcare assistant. You help people with health questions, vaccination schedules, and medical guidance.

IMPORTANT RULES:
1. Reply EXCLUSIVELY in {_language_label(language)}
2. Keep answers SHORT - maximum 3-4 sentences, in simple words
3. NO asterisks, bold text, or other formatting - just plain text
4. Always remind them to visit a doctor for serious problems

User's question: {message}"""


# ============================================
# メイン関数
# ============================================
def generate(prompt: str) -> str:
    """
    プロンプトから応答テキストを生成

    Raises:
        AIServiceError: 環境変数未設定、またはAPI呼び出しに失敗した場合
    """
    if not validate_env_variables():
        raise AIServiceError("Azure OpenAI環境変数が未設定です")

    try:
        client = _create_openai_client()
        response = client.chat.completions.create(
            model=settings.AZURE_OPENAI_DEPLOYMENT_NAME,
            messages=[
                {
                    "role": "system",
                    "content": "You are a kind and careful healthcare assistant.",
                },
                {"role": "user", "content": prompt},
            ],
            max_tokens=400,
            temperature=0.7,
        )
        return (response.choices[0].message.content or "").strip()
    except Exception as e:
        logger.error(f"AI応答生成エラー: {str(e)}")
        raise AIServiceError(f"AI応答の生成に失敗しました: {str(e)}")


def generate_health_reply(message: str, language: Optional[str] = None) -> str:
    """
    ヘルスケア質問への応答を生成

    Parameters:
        message: ユーザーの質問
        language: 言語コード（省略時はメッセージから推定）

    Returns:
        str: 書式記号を除去した応答テキスト
    """
    language = language or detect_language(message)
    return clean_response_text(generate(_build_prompt(message, language)))
