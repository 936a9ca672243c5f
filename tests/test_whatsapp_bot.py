"""
WhatsAppヘルスケアボットのテスト
"""

import time

import pytest

from app.services.ai_service import AIServiceError
from app.services.whatsapp_bot import ERROR_MESSAGES, HELP_MESSAGES, STATUS_MESSAGES, WhatsAppBot
from app.services.whatsapp_client import InboundMessage


class RecordingClient:
    """送信内容を記録するクライアント"""

    is_ready = True

    def __init__(self):
        self.handlers = []
        self.sent = []

    def on_message(self, handler):
        self.handlers.append(handler)

    def send_message(self, address, text):
        self.sent.append((address, text))

    def get_status(self):
        return {"is_ready": self.is_ready}


@pytest.fixture
def wa_client():
    return RecordingClient()


class TestBuildReply:
    """返信内容"""

    def test_help_command(self, wa_client):
        bot = WhatsAppBot(wa_client, ai_reply=lambda message, language: "unused")
        assert bot.build_reply("help") == HELP_MESSAGES["en"]

    def test_hindi_help_command(self, wa_client):
        bot = WhatsAppBot(wa_client, ai_reply=lambda message, language: "unused")
        assert bot.build_reply("सहायता") == HELP_MESSAGES["hi"]

    def test_status_command(self, wa_client):
        bot = WhatsAppBot(wa_client, ai_reply=lambda message, language: "unused")
        assert bot.build_reply("  Status ") == STATUS_MESSAGES["en"]

    def test_ai_reply_with_detected_language(self, wa_client):
        calls = []

        def ai_reply(message, language):
            calls.append((message, language))
            return "Drink water and rest."

        bot = WhatsAppBot(wa_client, ai_reply=ai_reply)

        assert bot.build_reply("mujhe bukhar hai kya karun") == "Drink water and rest."
        assert calls == [("mujhe bukhar hai kya karun", "hinglish")]

    def test_ai_failure_falls_back_to_fixed_message(self, wa_client):
        def ai_reply(message, language):
            raise AIServiceError("quota exceeded")

        bot = WhatsAppBot(wa_client, ai_reply=ai_reply)

        assert bot.build_reply("I have a headache") == ERROR_MESSAGES["en"]


class TestHandleMessage:
    """受信メッセージの処理"""

    def test_registers_handler(self, wa_client):
        bot = WhatsAppBot(wa_client, ai_reply=lambda message, language: "ok")
        assert wa_client.handlers == [bot.handle_message]

    def test_replies_to_sender(self, wa_client):
        bot = WhatsAppBot(wa_client, ai_reply=lambda message, language: "Please see a doctor.")

        bot.handle_message(InboundMessage(sender="919876543210", text="chest pain"))

        assert wa_client.sent == [("919876543210", "Please see a doctor.")]
        assert bot.user_sessions["919876543210"]["last_message"] == "chest pain"
        assert bot.get_status()["user_count"] == 1

    def test_sessions_are_bounded(self, wa_client):
        """保持する送信者数は上限を超えない"""
        bot = WhatsAppBot(wa_client, ai_reply=lambda message, language: "ok", session_max_size=2)

        for sender in ("919876543210", "919123456780", "919000000001"):
            bot.handle_message(InboundMessage(sender=sender, text="fever"))

        assert len(wa_client.sent) == 3
        assert bot.get_status()["user_count"] == 2
        assert "919000000001" in bot.user_sessions

    def test_sessions_expire(self, wa_client):
        """保持期間を過ぎたやり取りは破棄される"""
        bot = WhatsAppBot(wa_client, ai_reply=lambda message, language: "ok", session_ttl=60)
        bot.handle_message(InboundMessage(sender="919876543210", text="fever"))

        bot.user_sessions.expire(time.monotonic() + 61)

        assert bot.get_status()["user_count"] == 0
