"""
AIチャットAPI
Webチャット画面からの質問にAI応答を返す
"""
import uuid
import logging

from fastapi import APIRouter, HTTPException, Request, status

from app.rate_limiter import CHAT_RATE_LIMIT, limiter
from app.schemas.chat import ChatRequest, ChatResponse
from app.services import ai_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse, summary="AIチャット")
@limiter.limit(CHAT_RATE_LIMIT)
def chat(request: Request, payload: ChatRequest):
    """ヘルスケアの質問にAIが回答"""
    session_id = payload.session_id or f"session_{uuid.uuid4().hex[:12]}"
    language = payload.language or ai_service.detect_language(payload.message)

    try:
        reply = ai_service.generate_health_reply(payload.message, language)
    except ai_service.AIServiceError as e:
        logger.error(f"チャット応答エラー: session={session_id}, error={str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to process message",
        )

    return ChatResponse(
        success=True,
        reply=reply,
        language=language,
        session_id=session_id,
    )
