"""
Smoke tests for the SQLRepository against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from zenshift.db.models import Product, Review
from zenshift.repositories.sql_repository import SQLRepository


@pytest.fixture()
def repo(db_env):
    return SQLRepository()


def test_user_lookup_flow(repo):
    user = repo.create_user(email="alice@example.com", name="Alice", password_hash="hash")
    assert repo.get_user(user.id).email == "alice@example.com"
    assert repo.get_user_by_email("alice@example.com").id == user.id
    assert repo.get_user("") is None
    assert repo.get_user_by_billing_customer_id("") is None

    repo.set_billing_customer_id(user.id, "cus_1")
    assert repo.get_user_by_billing_customer_id("cus_1").id == user.id


def test_email_and_social_ids_are_unique(repo):
    repo.create_user(email="alice@example.com", name="Alice", google_id="g-1")
    with pytest.raises(IntegrityError):
        repo.create_user(email="alice@example.com", name="Other")
    with pytest.raises(IntegrityError):
        repo.create_user(email="bob@example.com", name="Bob", google_id="g-1")
    assert repo.get_user_by_social_id("google", "g-1").email == "alice@example.com"
    assert repo.get_user_by_social_id("twitter", "g-1") is None


def test_save_user_persists_detached_changes(repo):
    user = repo.create_user(email="alice@example.com", name="Alice")
    user.name = "Alice Liddell"
    user.avatar = "https://cdn.example.com/a.png"
    repo.save_user(user)
    stored = repo.get_user(user.id)
    assert stored.name == "Alice Liddell"
    assert stored.avatar == "https://cdn.example.com/a.png"


def test_token_pairs_are_written_and_cleared_together(repo):
    user = repo.create_user(email="alice@example.com", name="Alice")
    expires = datetime.now(timezone.utc) + timedelta(hours=1)
    repo.set_verify_email_token(user.id, "tok", expires)
    stored = repo.get_user(user.id)
    assert stored.verify_email_token == "tok" and stored.verify_email_expire is not None

    repo.consume_verify_email_token(user.id)
    stored = repo.get_user(user.id)
    assert stored.is_email_verified is True
    assert stored.verify_email_token is None and stored.verify_email_expire is None


def test_subscription_overwrite_by_customer(repo):
    user = repo.create_user(email="alice@example.com", name="Alice")
    repo.set_billing_customer_id(user.id, "cus_1")

    changed = repo.update_subscription_by_customer(
        "cus_1", subscription_plan="premium", subscription_status="active", stripe_subscription_id="sub_1"
    )
    assert changed == 1
    assert repo.update_subscription_by_customer("cus_missing", subscription_status="canceled") == 0
    with pytest.raises(ValueError):
        repo.update_subscription_by_customer("cus_1", email="evil@example.com")

    stored = repo.get_user(user.id)
    assert (stored.subscription_plan, stored.subscription_status) == ("premium", "active")


def test_sessions_and_user_deletion(repo):
    user = repo.create_user(email="alice@example.com", name="Alice")
    expires = datetime.now(timezone.utc) + timedelta(days=1)
    repo.create_session("s1", user.id, expires)
    repo.create_session("s2", user.id, expires)
    assert repo.get_user_session("s1").user_id == user.id

    repo.delete_session("s1")
    assert repo.get_user_session("s1") is None

    repo.delete_user(user.id)
    assert repo.get_user_session("s2") is None
    assert repo.get_user(user.id) is None


def test_generic_resources_and_review_cascade(repo):
    mug = repo.create_resource(Product, {"title": "Mug", "image_src": ["a.png"], "price": 12.5, "type": "physical"})
    repo.create_resource(Product, {"title": "Poster", "image_src": ["b.png"], "price": 5, "type": "digital"})
    repo.create_resource(
        Review,
        {"buyer_name": "Ann", "feedback_mark": 5, "review_text": "Lovely", "product_id": mug.id},
    )

    assert repo.count_resources(Product, {}) == 2
    assert repo.count_resources(Product, {"type": "digital"}) == 1
    cheapest = repo.list_resources(Product, {}, [Product.price.asc()], offset=0, limit=1)
    assert [p.title for p in cheapest] == ["Poster"]

    updated = repo.update_resource(Product, mug.id, {"price": 15})
    assert updated.price == 15
    assert repo.update_resource(Product, "missing", {"price": 1}) is None

    assert repo.delete_resource(Product, mug.id) is True
    assert repo.delete_resource(Product, mug.id) is False
    assert repo.count_resources(Review, {}) == 0
