"""
Tests for the signup / login orchestration, with the store mocked out.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from auth.errors import (
    DuplicateAccountError,
    InvalidCredentialsError,
    StorageViolation,
    StorageViolationError,
    ValidationFailedError,
)
from auth.password import PasswordHasher
from auth.service import AccountService
from auth.tokens import TokenIssuer
from database.models import User

SECRET = "test-secret-key-for-unit-tests-1234567890"


@pytest.fixture(scope="module")
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer():
    return TokenIssuer(SECRET, expiry_seconds=60)


def _user(email="a@b.com", password_hash="") -> User:
    now = datetime.now(timezone.utc)
    return User(
        id="11111111-2222-4333-8444-555555555555",
        email=email,
        password_hash=password_hash,
        created_at=now,
        updated_at=now,
    )


def _store(existing=None, created=None):
    store = MagicMock()
    store.find_by_email = AsyncMock(return_value=existing)
    store.create = AsyncMock(return_value=created)
    store.get_by_id = AsyncMock(return_value=created)
    return store


class TestSignup:
    @pytest.mark.asyncio
    async def test_creates_account_with_normalized_email(self, hasher, issuer):
        store = _store(created=_user())
        service = AccountService(store, hasher, issuer)

        result = await service.signup({"email": " A@B.com ", "password": "secret1"})

        store.find_by_email.assert_awaited_once_with("a@b.com")
        email, password_hash = store.create.await_args.args
        assert email == "a@b.com"
        assert password_hash != "secret1"
        assert hasher.verify_sync("secret1", password_hash)
        assert result["user"]["email"] == "a@b.com"
        assert "password_hash" not in result["user"]

    @pytest.mark.asyncio
    async def test_returns_refetched_row(self, hasher, issuer):
        created = _user()
        stored = _user(email="stored@b.com")
        store = _store(created=created)
        store.get_by_id.return_value = stored
        service = AccountService(store, hasher, issuer)

        result = await service.signup({"email": "a@b.com", "password": "secret1"})

        store.get_by_id.assert_awaited_once_with(created.id)
        assert result["user"] == stored.to_safe_dict()

    @pytest.mark.asyncio
    async def test_validation_failure_short_circuits(self, hasher, issuer):
        store = _store()
        service = AccountService(store, hasher, issuer)

        with pytest.raises(ValidationFailedError) as excinfo:
            await service.signup({"email": "a@b.com", "password": "123"})

        assert excinfo.value.issues[0]["field"] == "password"
        store.find_by_email.assert_not_awaited()
        store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_account_is_duplicate(self, hasher, issuer):
        store = _store(existing=_user())
        service = AccountService(store, hasher, issuer)

        with pytest.raises(DuplicateAccountError) as excinfo:
            await service.signup({"email": "A@B.COM", "password": "secret1"})

        assert excinfo.value.kind is StorageViolation.UNIQUE
        store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_race_duplicate_propagates_store_violation(self, hasher, issuer):
        store = _store()
        store.create.side_effect = StorageViolationError(
            StorageViolation.UNIQUE, "UNIQUE constraint failed: users.email", fields=["email"],
        )
        service = AccountService(store, hasher, issuer)

        with pytest.raises(StorageViolationError) as excinfo:
            await service.signup({"email": "a@b.com", "password": "secret1"})

        assert excinfo.value.kind is StorageViolation.UNIQUE
        assert excinfo.value.fields == ("email",)


class TestLogin:
    @pytest.mark.asyncio
    async def test_success_returns_user_and_token(self, hasher, issuer):
        user = _user(password_hash=hasher.hash_sync("secret1"))
        service = AccountService(_store(existing=user), hasher, issuer)

        result = await service.login({"email": "A@b.com", "password": "secret1"})

        assert result["user"] == user.to_safe_dict()
        assert issuer.verify(result["token"]) == {"id": user.id, "email": "a@b.com"}

    @pytest.mark.asyncio
    async def test_unknown_email(self, hasher, issuer):
        service = AccountService(_store(existing=None), hasher, issuer)
        with pytest.raises(InvalidCredentialsError):
            await service.login({"email": "ghost@b.com", "password": "secret1"})

    @pytest.mark.asyncio
    async def test_unknown_email_still_spends_a_verification(self, hasher, issuer):
        spy = MagicMock(wraps=hasher)
        spy.verify_decoy = AsyncMock(return_value=False)
        service = AccountService(_store(existing=None), spy, issuer)
        with pytest.raises(InvalidCredentialsError):
            await service.login({"email": "ghost@b.com", "password": "secret1"})
        spy.verify_decoy.assert_awaited_once_with("secret1")

    @pytest.mark.asyncio
    async def test_wrong_password(self, hasher, issuer):
        user = _user(password_hash=hasher.hash_sync("secret1"))
        service = AccountService(_store(existing=user), hasher, issuer)
        with pytest.raises(InvalidCredentialsError):
            await service.login({"email": "a@b.com", "password": "secret2"})

    @pytest.mark.asyncio
    async def test_both_failures_are_indistinguishable(self, hasher, issuer):
        user = _user(password_hash=hasher.hash_sync("secret1"))
        errors = []
        for store, password in ((_store(existing=None), "secret1"), (_store(existing=user), "nope-nope")):
            with pytest.raises(InvalidCredentialsError) as excinfo:
                await AccountService(store, hasher, issuer).login(
                    {"email": "a@b.com", "password": password}
                )
            errors.append(excinfo.value)
        assert [(e.status_code, e.message) for e in errors] == [(401, "Invalid credentials")] * 2

    @pytest.mark.asyncio
    async def test_validation_failure(self, hasher, issuer):
        store = _store()
        with pytest.raises(ValidationFailedError):
            await AccountService(store, hasher, issuer).login({"email": "bad", "password": "secret1"})
        store.find_by_email.assert_not_awaited()
