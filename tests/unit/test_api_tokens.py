"""Unit tests for ApiToken equality and the ApiTokens collection."""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from repohost.api_tokens import ApiToken, ApiTokens
from repohost.storage import InMemoryStorage
from repohost.users import User

EXPIRATION = datetime(2030, 1, 1, tzinfo=timezone.utc)

names = st.text(min_size=1, max_size=20)
secrets = st.binary(min_size=1, max_size=64)
expirations = st.datetimes(timezones=st.just(timezone.utc))


class TestApiTokenEquality:
    @given(name=names, secret=secrets, expiration=expirations)
    def test_equal_values_equal_and_hash_equal(self, name, secret, expiration):
        first = ApiToken(name, bytes(secret), expiration)
        second = ApiToken(name, bytes(secret), expiration)
        assert first == second
        assert hash(first) == hash(second)

    @given(
        name=names,
        secret=secrets,
        expiration=expirations,
        data=st.data(),
    )
    def test_one_flipped_byte_breaks_equality(self, name, secret, expiration, data):
        index = data.draw(st.integers(min_value=0, max_value=len(secret) - 1))
        changed = bytearray(secret)
        changed[index] ^= 0xFF

        original = ApiToken(name, secret, expiration)
        altered = ApiToken(name, bytes(changed), expiration)

        assert original != altered
        assert hash(original) != hash(altered)

    def test_other_name_or_expiration_not_equal(self):
        token = ApiToken("ci", b"\x01\x02", EXPIRATION)
        assert token != ApiToken("cd", b"\x01\x02", EXPIRATION)
        assert token != ApiToken("ci", b"\x01\x02", EXPIRATION + timedelta(seconds=1))

    def test_secret_not_in_repr(self):
        assert "hunter2" not in repr(ApiToken("ci", b"hunter2", EXPIRATION))

    def test_expired(self):
        token = ApiToken("ci", b"x", EXPIRATION)
        assert not token.is_expired(EXPIRATION - timedelta(days=1))
        assert token.is_expired(EXPIRATION)

    def test_naive_expiration(self):
        token = ApiToken("ci", b"x", datetime(2000, 1, 1))
        assert token.is_expired()
        assert not ApiToken("ci", b"x", datetime(2999, 1, 1)).is_expired()

    def test_naive_and_aware_mixed(self):
        local_expiration = datetime(2030, 1, 1, 12, 0)
        token = ApiToken("ci", b"x", local_expiration)
        aware = local_expiration.astimezone(timezone.utc)

        assert token.is_expired(aware)
        assert not token.is_expired(aware - timedelta(minutes=1))
        assert not ApiToken("ci", b"x", EXPIRATION).is_expired(datetime(2029, 12, 30))


class TestApiTokens:
    @pytest.fixture
    def users(self):
        return (
            User("mihai", "m@example.com", "github"),
            User("vlad", "v@example.com", "gitlab"),
        )

    def test_iterates_all_users_tokens(self, users):
        mihai, vlad = users
        tokens = ApiTokens()
        tokens.register(mihai, ApiToken("a", b"1", EXPIRATION))
        tokens.register(vlad, ApiToken("b", b"2", EXPIRATION))

        assert {t.name for t in tokens} == {"a", "b"}
        assert len(tokens) == 2

    def test_of_user(self, users):
        mihai, vlad = users
        tokens = ApiTokens({mihai: [ApiToken("a", b"1", EXPIRATION)], vlad: []})

        assert [t.name for t in tokens.of_user(mihai)] == ["a"]
        assert list(tokens.of_user(vlad)) == []

    def test_of_unknown_user(self, users):
        with pytest.raises(KeyError):
            ApiTokens().of_user(users[0])

    def test_remove(self, users):
        token = ApiToken("a", b"1", EXPIRATION)
        tokens = ApiTokens()
        tokens.register(users[0], token)

        assert tokens.remove(token) is True
        assert tokens.remove(token) is False
        with pytest.raises(KeyError):
            tokens.of_user(users[0])

    def test_storage_holds_tokens(self, users):
        storage = InMemoryStorage()
        storage.api_tokens().register(users[0], ApiToken("a", b"1", EXPIRATION))
        assert len(storage.api_tokens().of_user(users[0])) == 1
