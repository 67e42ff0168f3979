"""UserService tests — account storage and credential handling."""

import pytest

from tollgate.auth.password import verify_password
from tollgate.errors import EmailAlreadyExists, UserNotFound


@pytest.mark.asyncio
async def test_create_hashes_password(users):
    user = await users.create(
        first_name="Ada", last_name="Lovelace", email="ada@example.com", password="engine"
    )
    assert user.id is not None
    assert user.created_at is not None
    assert user.password_hash != "engine"
    assert len(user.password_hash) == 128
    assert verify_password("engine", user.password_hash, user.salt)


@pytest.mark.asyncio
async def test_create_duplicate_email(users, make_user):
    await make_user(email="dup@example.com")
    with pytest.raises(EmailAlreadyExists):
        await make_user(email="dup@example.com")


@pytest.mark.asyncio
async def test_find_and_count(users, make_user):
    assert await users.count() == 0
    a = await make_user()
    b = await make_user()

    assert await users.count() == 2
    assert (await users.find_by_email(a.email)).id == a.id
    assert (await users.find_by_id(b.id)).email == b.email
    assert await users.find_by_email("missing@example.com") is None
    assert await users.find_by_id(9999) is None
    assert {u.id for u in await users.list_users()} == {a.id, b.id}


@pytest.mark.asyncio
async def test_update_partial(users, make_user):
    user = await make_user(first_name="Old", last_name="Name")
    old_hash = user.password_hash

    updated = await users.update(user.id, first_name="New")
    assert updated.first_name == "New"
    assert updated.last_name == "Name"
    assert updated.password_hash == old_hash
    assert updated.updated_at is not None


@pytest.mark.asyncio
async def test_update_same_email_is_allowed(users, make_user):
    user = await make_user()
    updated = await users.update(user.id, email=user.email)
    assert updated.email == user.email


@pytest.mark.asyncio
async def test_update_errors(users, make_user):
    first = await make_user()
    second = await make_user()
    with pytest.raises(EmailAlreadyExists):
        await users.update(second.id, email=first.email)
    with pytest.raises(UserNotFound):
        await users.update(9999, first_name="Nobody")


@pytest.mark.asyncio
async def test_delete(users, make_user):
    user = await make_user()
    assert await users.delete(user.id) is True
    assert await users.delete(user.id) is False
    assert await users.find_by_id(user.id) is None
    assert await users.count() == 0
