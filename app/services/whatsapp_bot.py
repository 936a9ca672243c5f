"""
WhatsAppヘルスケアボット
受信メッセージにAI応答を返信する
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from cachetools import TTLCache

from app.services.ai_service import AIServiceError, detect_language, generate_health_reply
from app.services.whatsapp_client import InboundMessage, WhatsAppCloudClient

logger = logging.getLogger(__name__)

HELP_COMMANDS = {"help", "सहायता", "मदत", "મદદ", "साहाय्य", "உதவி", "సహాయం", "ಸಹಾಯ", "സഹായം"}
STATUS_COMMANDS = {"status", "स्थिति", "स्थिती", "સ્થિતિ", "ಸ್ಥಿತಿ", "స్థితి", "நிலை", "കാര്യം"}

HELP_MESSAGES = {
    "en": "🤖 I'm here to help with your health questions!\n\n• Ask any health-related question\n• Get vaccination information\n• Find hospitals nearby\n• Get emergency advice\n\nJust type your question!",
    "hi": "🤖 मैं आपकी स्वास्थ्य सहायता के लिए यहाँ हूँ!\n\n• कोई भी स्वास्थ्य सवाल पूछें\n• टीकाकरण के बारे में जानें\n• अस्पताल खोजने में मदद लें\n• आपातकालीन स्थिति के लिए सलाह\n\nबस अपना सवाल टाइप करें!",
    "hinglish": "🤖 Main yahan tumhare health questions ke liye hun!\n\n• Koi bhi health ka sawal pucho\n• Vaccination ki jaankari lo\n• Paas ke hospitals dhundho\n• Emergency ke liye advice lo\n\nBas apna sawal type karo!",
}
STATUS_MESSAGES = {
    "en": "✅ Bot is online and working!",
    "hi": "✅ बॉट ऑनलाइन है और काम कर रहा है!",
    "hinglish": "✅ Bot online hai aur kaam kar raha hai!",
}
ERROR_MESSAGES = {
    "en": "I apologize, but I'm having trouble processing your question. Please try rephrasing your question or ask about healthcare, vaccinations, or medical guidance.",
    "hi": "क्षमा करें, मैं आपके सवाल को समझ नहीं पा रहा हूं। कृपया अपना सवाल दोबारा पूछें या अंग्रेजी में लिखें।",
    "hinglish": "Sorry yaar, main tumhara sawal samajh nahi pa raha. Please apna sawal doosre tarike se pucho ya English mein likho.",
}


class WhatsAppBot:
    """WhatsAppヘルスケアボット"""

    # 会話履歴の保持期間: 24時間
    DEFAULT_SESSION_TTL = 24 * 60 * 60
    # 最大保持数: 10000ユーザー
    DEFAULT_SESSION_MAX_SIZE = 10000

    def __init__(
        self,
        client: WhatsAppCloudClient,
        ai_reply: Callable[[str, Optional[str]], str] = generate_health_reply,
        session_ttl: int = DEFAULT_SESSION_TTL,
        session_max_size: int = DEFAULT_SESSION_MAX_SIZE,
    ):
        """
        Args:
            client: WhatsAppクライアント
            ai_reply: AI応答の生成関数
            session_ttl: 送信者ごとの直近のやり取りを保持する秒数
            session_max_size: 保持する送信者の最大数
        """
        self.client = client
        self.ai_reply = ai_reply
        self.user_sessions: TTLCache = TTLCache(maxsize=session_max_size, ttl=session_ttl)
        self._lock = threading.Lock()
        self.client.on_message(self.handle_message)

    def handle_message(self, message: InboundMessage) -> None:
        """受信メッセージに返信"""
        logger.info(f"📱 メッセージ受信: from={message.sender}")
        reply = self.build_reply(message.text)
        self._remember(message.sender, message.text, reply)
        self.client.send_message(message.sender, reply)

    def build_reply(self, text: str) -> str:
        language = detect_language(text)
        command = text.strip().lower()

        if command in HELP_COMMANDS:
            return HELP_MESSAGES.get(language, HELP_MESSAGES["en"])
        if command in STATUS_COMMANDS:
            return STATUS_MESSAGES.get(language, STATUS_MESSAGES["en"])

        try:
            return self.ai_reply(text, language)
        except AIServiceError as e:
            logger.warning(f"AI応答の生成に失敗したため定型文を返信: {str(e)}")
            return ERROR_MESSAGES.get(language, ERROR_MESSAGES["en"])

    def _remember(self, sender: str, text: str, reply: str) -> None:
        with self._lock:
            self.user_sessions[sender] = {
                "last_message": text,
                "last_response": reply,
                "timestamp": datetime.now(),
            }

    def get_status(self) -> dict:
        status = self.client.get_status()
        with self._lock:
            status["user_count"] = len(self.user_sessions)
        return status
