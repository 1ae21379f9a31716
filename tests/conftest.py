import itertools
import os
from datetime import datetime, timezone
from decimal import Decimal

# 엔진이 import 시점에 만들어지므로 partnerapi import 전에 설정
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from sqlalchemy.orm import sessionmaker

from partnerapi.config import Settings
from partnerapi.database.connection import build_engine
from partnerapi.models.base import Base
from partnerapi.models.deal import Deal as DealModel, DealStatus, ProductType
from partnerapi.models.notification import Notification  # noqa: F401
from partnerapi.models.points import PointsHistory
from partnerapi.models.rate_table import PointsConfig  # noqa: F401
from partnerapi.models.rewards import Reward as RewardModel
from partnerapi.models.support_ticket import SupportTicket  # noqa: F401
from partnerapi.models.user import User as UserModel, UserRole


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        NOTIFICATIONS_ENABLED=True,
        REDEMPTION_REVALIDATE_BALANCE=True,
    )


@pytest.fixture
def db_session():
    """테스트마다 새 in-memory sqlite"""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    counter = itertools.count(1)

    def _make_user(
        region=None,
        role=UserRole.USER,
        is_approved=True,
        country="US",
        username=None,
    ):
        n = next(counter)
        user = UserModel(
            username=username or f"partner{n}",
            email=f"{username or f'partner{n}'}@example.com",
            first_name="Test",
            last_name=f"User{n}",
            country=country,
            region=region,
            role=role.value,
            is_active=True,
            is_approved=is_approved,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_deal(db_session):
    def _make_deal(
        user,
        deal_value="2500.00",
        product_type=ProductType.SOFTWARE,
        status=DealStatus.PENDING,
        points_earned=0,
        product_name="Office Suite",
    ):
        deal = DealModel(
            user_id=user.id,
            product_type=product_type.value,
            product_name=product_name,
            deal_value=Decimal(deal_value),
            quantity=1,
            close_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
            status=status.value,
            points_earned=points_earned,
        )
        db_session.add(deal)
        db_session.commit()
        return deal

    return _make_deal


@pytest.fixture
def make_reward(db_session):
    def _make_reward(points_cost=3, name="Coffee Mug", is_active=True):
        reward = RewardModel(
            name=name,
            points_cost=points_cost,
            category="merchandise",
            is_active=is_active,
        )
        db_session.add(reward)
        db_session.commit()
        return reward

    return _make_reward


@pytest.fixture
def add_points(db_session):
    """원장에 직접 항목 추가 (서비스를 거치지 않는 초기 잔액 세팅용)"""

    def _add_points(user, points, deal_id=None, reward_id=None, description="Seed"):
        entry = PointsHistory(
            user_id=user.id,
            points=points,
            deal_id=deal_id,
            reward_id=reward_id,
            description=description,
        )
        db_session.add(entry)
        db_session.commit()
        return entry

    return _add_points
