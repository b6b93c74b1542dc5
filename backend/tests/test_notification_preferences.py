"""API tests for notification preferences."""
from bookbros.models import NotificationPreference

NICK = "nick@example.com"


def test_defaults_without_stored_row(client, db):
    body = client.get("/api/notification-preferences").json()
    
    assert body == {"user_email": NICK, "email_on_mention": True, "email_on_all_comments": False}
    assert db.get(NotificationPreference, NICK) is None


def test_update_upserts_and_keeps_omitted_flags(client):
    first = client.put("/api/notification-preferences", json={"email_on_all_comments": True}).json()
    assert first["email_on_mention"] is True
    assert first["email_on_all_comments"] is True
    
    second = client.put("/api/notification-preferences", json={"email_on_mention": False}).json()
    assert second["email_on_mention"] is False
    assert second["email_on_all_comments"] is True
    
    assert client.get("/api/notification-preferences").json() == second
