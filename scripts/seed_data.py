"""
기본 데이터 시드 스크립트
기본/지역별 요율표와 리워드 카탈로그, 최초 관리자 계정을 생성
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from partnerapi.config import settings
from partnerapi.database.connection import SessionLocal
from partnerapi.models.user import UserRole
from partnerapi.schemas.rate_table import RateTableUpdate
from partnerapi.schemas.rewards import RewardCreate
from partnerapi.schemas.user import UserCreate
from partnerapi.services.rate_table_service import RateTableService
from partnerapi.services.reward_service import RewardService
from partnerapi.services.user_service import UserService

REGIONS = ["NOLA", "SOLA", "BRASIL", "MEXICO"]

DEFAULT_REWARDS = [
    ("Gift Card $50", "gift_card", 50),
    ("Wireless Headphones", "electronics", 150),
    ("Smart Watch", "electronics", 300),
    ("Laptop Backpack", "accessories", 80),
]


def seed_admin(db) -> int:
    user_service = UserService(db, settings=settings)
    admin = user_service.user_repo.get_by_username("admin")
    if admin:
        print("Admin user already exists")
        return admin.id

    admin = user_service.create_user(
        UserCreate(
            username="admin",
            email="admin@example.com",
            first_name="System",
            last_name="Admin",
            country="US",
            role=UserRole.SUPER_ADMIN,
        )
    )
    print(f"Admin user created: id={admin.id}")
    return admin.id


def seed_rate_tables(db, admin_id: int):
    rate_service = RateTableService(db, settings=settings)
    default_rates = RateTableUpdate(
        software_rate=settings.DEFAULT_SOFTWARE_RATE,
        hardware_rate=settings.DEFAULT_HARDWARE_RATE,
        equipment_rate=settings.DEFAULT_EQUIPMENT_RATE,
    )
    for region in [None] + REGIONS:
        if rate_service.rate_repo.get_by_region(region):
            continue
        table = rate_service.update_rate_table(default_rates, admin_id, region=region)
        print(f"Rate table {table.region or 'default'} created (version {table.version})")


def seed_rewards(db):
    reward_service = RewardService(db, settings=settings)
    existing = {reward.name for reward in reward_service.get_rewards(active_only=False)}
    for name, category, cost in DEFAULT_REWARDS:
        if name in existing:
            continue
        reward_service.create_reward(
            RewardCreate(name=name, category=category, points_cost=cost)
        )
        print(f"Reward created: {name} ({cost} points)")


def main():
    db = SessionLocal()
    try:
        admin_id = seed_admin(db)
        seed_rate_tables(db, admin_id)
        seed_rewards(db)
        print("Seed data complete")
    except Exception as e:
        db.rollback()
        print(f"Seed failed: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
