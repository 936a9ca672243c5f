"""
レート制限設定
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

# AIチャットは外部APIを呼ぶため送信元IPごとに制限する
CHAT_RATE_LIMIT = settings.CHAT_RATE_LIMIT

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
