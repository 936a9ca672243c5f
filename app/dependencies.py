"""依存注入モジュール"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from app.config import settings
from app.services.notification_processor import NotificationProcessor
from app.services.notification_store import NotificationStore
from app.services.whatsapp_client import WhatsAppCloudClient

security = HTTPBearer(auto_error=False)

ALGORITHM = "HS256"


def _decode_token(credentials: HTTPAuthorizationCredentials | None) -> dict:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid token",
        )


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """
    管理者トークンを検証
    Authorizationヘッダーのトークンが type=admin であることを確認します
    """
    payload = _decode_token(credentials)
    if payload.get("type") != "admin" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return payload


async def get_current_user_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """ユーザートークンを検証"""
    payload = _decode_token(credentials)
    if payload.get("type") != "user" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User access required",
        )
    return payload


def get_notification_store(request: Request) -> NotificationStore:
    return request.app.state.notification_store


def get_notification_processor(request: Request) -> NotificationProcessor:
    processor = getattr(request.app.state, "notification_processor", None)
    if processor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification processor not initialized",
        )
    return processor


def get_whatsapp_client(request: Request) -> WhatsAppCloudClient:
    client = getattr(request.app.state, "whatsapp_client", None)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="WhatsApp bot not initialized",
        )
    return client
