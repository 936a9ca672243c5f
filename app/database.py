from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from app.config import settings

DATABASE_URL = settings.DATABASE_URL

connect_args = {}

# SQLite はバックグラウンドスケジューラーのスレッドからも使うため同一スレッド制約を外す
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
    engine = create_engine(DATABASE_URL, connect_args=connect_args)
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )

# セッションファクトリー
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base Class for ORM models
class Base(DeclarativeBase):
    pass


# 依存性注入用のジェネレータ
def get_db():
    """
    FastAPIの依存性注入で使用するDBセッション

    使用例:
        from sqlalchemy.orm import Session
        from app.database import get_db

        @router.get("/users")
        def get_users(db: Session = Depends(get_db)):
            users = db.query(User).all()
            return users
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
