import pytest

from scripts import make_admin

from conftest import make_user


@pytest.fixture(autouse=True)
def use_test_engine(engine, monkeypatch):
    monkeypatch.setattr(make_admin, "engine", engine)


def test_promote_and_revoke(session):
    user = make_user(session, "dana@example.com")

    assert make_admin.set_role("DANA@example.com", "admin")
    session.refresh(user)
    assert user.is_admin

    assert make_admin.set_role("dana@example.com", "user")
    session.refresh(user)
    assert not user.is_admin


def test_unknown_email():
    assert not make_admin.set_role("nobody@example.com", "admin")
