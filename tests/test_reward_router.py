from unittest.mock import Mock

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from partnerapi.core import auth_middleware
from partnerapi.core.exceptions import DuplicateRequestError, InsufficientPointsError
from partnerapi.database.session import get_db
from partnerapi.main import create_app
from partnerapi.models.rewards import RedemptionStatus, ShipmentStatus
from partnerapi.models.user import UserRole
from partnerapi.schemas.rewards import Redemption
from partnerapi.schemas.user import User as UserSchema


def as_schema(user_model):
    return UserSchema.model_validate(user_model)


@pytest.fixture
def app():
    app = create_app()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def partner():
    return UserSchema(
        id=1,
        username="partner",
        email="partner@example.com",
        first_name="Test",
        last_name="Partner",
        country="US",
        is_approved=True,
    )


@pytest.fixture
def mock_reward_service(app):
    service = Mock()
    app.container.services.reward_service.override(providers.Factory(lambda **kwargs: service))
    yield service
    app.container.services.reward_service.reset_override()


class TestRedeemRoutes:
    """리워드 교환 라우터 테스트 (서비스 mock)"""

    def test_redeem_success(self, app, client, partner, mock_reward_service):
        # Given
        app.dependency_overrides[auth_middleware.get_current_active_user] = lambda: partner
        mock_reward_service.request_redemption.return_value = Redemption(
            id=5,
            user_id=1,
            reward_id=3,
            status=RedemptionStatus.PENDING,
            shipment_status=ShipmentStatus.PENDING,
            delivery_address="1 Main St",
        )

        # When
        response = client.post(
            "/api/v1/rewards/3/redeem", json={"delivery_address": "1 Main St"}
        )

        # Then
        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        mock_reward_service.request_redemption.assert_called_once_with(
            1, 3, delivery_address="1 Main St"
        )

    def test_redeem_without_body(self, app, client, partner, mock_reward_service):
        app.dependency_overrides[auth_middleware.get_current_active_user] = lambda: partner
        mock_reward_service.request_redemption.return_value = Redemption(
            id=5,
            user_id=1,
            reward_id=3,
            status=RedemptionStatus.PENDING,
            shipment_status=ShipmentStatus.PENDING,
        )

        response = client.post("/api/v1/rewards/3/redeem")

        assert response.status_code == 201
        mock_reward_service.request_redemption.assert_called_once_with(
            1, 3, delivery_address=None
        )

    def test_redeem_insufficient_points(self, app, client, partner, mock_reward_service):
        app.dependency_overrides[auth_middleware.get_current_active_user] = lambda: partner
        mock_reward_service.request_redemption.side_effect = InsufficientPointsError(
            "Insufficient points. Required: 10, Available: 4",
            details={"required": 10, "available": 4},
        )

        response = client.post("/api/v1/rewards/3/redeem", json={})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "POINTS_001"
        assert error["details"] == {"required": 10, "available": 4}

    def test_redeem_duplicate(self, app, client, partner, mock_reward_service):
        app.dependency_overrides[auth_middleware.get_current_active_user] = lambda: partner
        mock_reward_service.request_redemption.side_effect = DuplicateRequestError(
            "You already have a pending redemption for this reward"
        )

        response = client.post("/api/v1/rewards/3/redeem", json={})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_001"

    def test_shipment_update_validates_status(self, app, client, mock_reward_service):
        admin = UserSchema(
            id=99,
            username="admin",
            email="admin@example.com",
            first_name="A",
            last_name="Dmin",
            country="US",
            role=UserRole.ADMIN,
        )
        app.dependency_overrides[auth_middleware.get_current_active_user] = lambda: admin

        response = client.put(
            "/api/v1/rewards/admin/redemptions/5/shipment",
            json={"shipment_status": "lost"},
        )

        assert response.status_code == 422
        mock_reward_service.update_shipment.assert_not_called()


class TestRedemptionFlow:
    """실제 서비스 + sqlite 세션으로 요청 -> 승인 -> 배송 흐름 검증"""

    def test_full_flow(self, app, client, db_session, make_user, make_reward, add_points):
        # Given
        partner = make_user(username="flowpartner")
        admin = make_user(username="flowadmin", role=UserRole.ADMIN)
        reward = make_reward(points_cost=3, name="Coffee Mug")
        add_points(partner, 5)

        actor = {"user": as_schema(partner)}
        app.dependency_overrides[get_db] = lambda: db_session
        app.dependency_overrides[auth_middleware.get_current_active_user] = lambda: actor["user"]

        # When: 교환 요청
        response = client.post(f"/api/v1/rewards/{reward.id}/redeem", json={})
        assert response.status_code == 201
        redemption_id = response.json()["id"]

        # 같은 리워드 재요청은 409
        assert client.post(f"/api/v1/rewards/{reward.id}/redeem", json={}).status_code == 409

        # 관리자 승인 + 배송
        actor["user"] = as_schema(admin)
        approve = client.post(f"/api/v1/rewards/admin/redemptions/{redemption_id}/approve")
        shipped = client.put(
            f"/api/v1/rewards/admin/redemptions/{redemption_id}/shipment",
            json={"shipment_status": "shipped"},
        )
        backwards = client.put(
            f"/api/v1/rewards/admin/redemptions/{redemption_id}/shipment",
            json={"shipment_status": "pending"},
        )

        # Then
        assert approve.status_code == 200
        assert approve.json()["status"] == "approved"
        assert shipped.status_code == 200
        assert shipped.json()["shipment_status"] == "shipped"
        assert backwards.status_code == 409

        actor["user"] = as_schema(partner)
        balance = client.get("/api/v1/points/balance").json()
        assert balance["balance"] == 2

        history = client.get("/api/v1/points/history").json()
        assert [entry["points"] for entry in history["entries"]] == [-3, 5]

        notifications = client.get("/api/v1/notifications").json()
        assert notifications["unread_count"] == 3
