"""
ユーザー言語設定APIのテスト
"""

from types import SimpleNamespace

from app.services.message_formatter import format_notification_message


class TestUpdatePreferences:
    """PUT /api/users/me/preferences"""

    def test_update_language(self, client, create_user, user_headers_for, db_session):
        user = create_user(language_preference="en")

        response = client.put(
            "/api/users/me/preferences",
            json={"language_preference": " TA "},
            headers=user_headers_for(user),
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Preferences updated successfully",
            "language_preference": "ta",
        }
        db_session.expire_all()
        assert user.language_preference == "ta"

    def test_next_notification_uses_new_language(
        self, client, processor, transport, create_user, create_notification, user_headers_for
    ):
        """更新後に送信される通知は新しい言語で整形される"""
        user = create_user(language_preference="en")
        client.put(
            "/api/users/me/preferences",
            json={"language_preference": "mr"},
            headers=user_headers_for(user),
        )
        create_notification(user, title="Camp", message="Free checkup on Monday.")

        processor.process_pending_notifications()

        assert transport.sent == [
            ("919876543210", format_notification_message("Camp", "Free checkup on Monday.", "mr"))
        ]

    def test_unsupported_language(self, client, create_user, user_headers_for):
        user = create_user()

        response = client.put(
            "/api/users/me/preferences",
            json={"language_preference": "fr"},
            headers=user_headers_for(user),
        )

        assert response.status_code == 422

    def test_requires_user_token(self, client, admin_headers):
        response = client.put(
            "/api/users/me/preferences",
            json={"language_preference": "hi"},
            headers=admin_headers,
        )
        assert response.status_code == 403

    def test_unknown_user(self, client, db_session, user_headers_for):
        """トークンのユーザーが存在しない場合は404"""
        response = client.put(
            "/api/users/me/preferences",
            json={"language_preference": "hi"},
            headers=user_headers_for(SimpleNamespace(id="missing-user")),
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"
