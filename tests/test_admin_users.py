"""
管理者向けユーザー一覧・通知テンプレートAPIのテスト
"""

import uuid
from datetime import datetime, timedelta

import pytest

from app.models import NotificationTemplate


@pytest.fixture
def create_template(db_session):
    """テスト用の通知テンプレートを作成する関数"""

    def _create_template(name="Vaccination", is_active=True, created_at=None):
        template = NotificationTemplate(
            id=str(uuid.uuid4()),
            name=name,
            type="vaccination_reminder",
            title=f"{name} reminder",
            message_template="Dear {name}, your vaccination is due on {date}.",
            is_active=is_active,
            created_at=created_at or datetime.now(),
            updated_at=created_at or datetime.now(),
        )
        db_session.add(template)
        db_session.commit()
        return template

    return _create_template


class TestListUsers:
    """GET /api/admin/users"""

    def test_requires_admin(self, client, create_user, user_headers_for):
        user = create_user()
        response = client.get("/api/admin/users", headers=user_headers_for(user))
        assert response.status_code == 403

    def test_active_users_newest_first(self, client, admin_headers, create_user):
        now = datetime.now()
        older = create_user(name="Older", mobile_number="9876543210", created_at=now - timedelta(days=2))
        newer = create_user(name="Newer", mobile_number="9123456780", created_at=now - timedelta(days=1))
        create_user(name="Inactive", mobile_number="9000000001", is_active=False)

        response = client.get("/api/admin/users", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["total"] == 2
        assert [u["id"] for u in data["users"]] == [newer.id, older.id]
        assert data["users"][0]["mobile_number"] == "9123456780"
        assert data["users"][0]["language_preference"] == "en"

    def test_pagination(self, client, admin_headers, create_user):
        now = datetime.now()
        users = [
            create_user(name=f"User {i}", mobile_number=f"98765432{i:02d}", created_at=now - timedelta(minutes=i))
            for i in range(3)
        ]

        response = client.get("/api/admin/users?page=2&limit=2", headers=admin_headers)

        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 2
        assert data["limit"] == 2
        assert [u["id"] for u in data["users"]] == [users[2].id]

    @pytest.mark.parametrize("search", ["asha", "91234", "asha@example"])
    def test_search(self, client, admin_headers, create_user, search):
        """名前・携帯番号・メールアドレスの部分一致で絞り込む"""
        asha = create_user(name="Asha Devi", mobile_number="9123456780", email="asha@example.com")
        create_user(name="Ravi Kumar", mobile_number="9876543210", email="ravi@example.com")

        response = client.get("/api/admin/users", params={"search": search}, headers=admin_headers)

        data = response.json()
        assert data["total"] == 1
        assert data["users"][0]["id"] == asha.id


class TestListTemplates:
    """GET /api/admin/templates"""

    def test_requires_admin(self, client):
        response = client.get("/api/admin/templates")
        assert response.status_code == 401

    def test_active_templates_newest_first(self, client, admin_headers, create_template):
        now = datetime.now()
        older = create_template(name="Polio", created_at=now - timedelta(days=3))
        newer = create_template(name="Measles", created_at=now - timedelta(days=1))
        create_template(name="Retired", is_active=False)

        response = client.get("/api/admin/templates", headers=admin_headers)

        assert response.status_code == 200
        templates = response.json()["templates"]
        assert [t["id"] for t in templates] == [newer.id, older.id]
        assert templates[0]["type"] == "vaccination_reminder"
        assert templates[0]["message_template"].startswith("Dear {name}")

    def test_no_templates(self, client, admin_headers):
        response = client.get("/api/admin/templates", headers=admin_headers)
        assert response.json() == {"success": True, "templates": []}
