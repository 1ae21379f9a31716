import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from partnerapi.database.connection import engine
from partnerapi.models.base import Base

# 테이블 등록을 위해 모든 모델 import
from partnerapi.models import (  # noqa: F401
    deal,
    notification,
    points,
    rate_table,
    rewards,
    support_ticket,
    user,
)


def init_db():
    """데이터베이스 테이블 생성"""
    try:
        Base.metadata.create_all(bind=engine)
        print(f"Database initialized: {', '.join(sorted(Base.metadata.tables))}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
