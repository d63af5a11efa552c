"""Password hashing, email lookup hashes and bearer tokens"""

from datetime import timedelta

import pytest

from bizmanager.infrastructure.security import (BcryptPasswordHasher,
                                                create_access_token,
                                                create_user_token,
                                                get_subject_user_id,
                                                hash_email, verify_token)


class TestPasswordHasher:
    def test_hash_and_verify(self):
        hasher = BcryptPasswordHasher()
        hashed = hasher.hash("correct horse")

        assert hashed != "correct horse"
        assert hasher.verify("correct horse", hashed)
        assert not hasher.verify("wrong horse", hashed)

    def test_malformed_hash_does_not_verify(self):
        assert not BcryptPasswordHasher().verify("anything", "not-a-bcrypt-hash")


class TestEmailHash:
    def test_normalises_before_hashing(self):
        assert hash_email("  Owner@Acme.TEST ") == hash_email("owner@acme.test")

    def test_is_sha256_hex(self):
        digest = hash_email("owner@acme.test")

        assert len(digest) == 64
        assert "owner" not in digest


class TestTokens:
    def test_user_token_round_trip(self):
        payload = verify_token(create_user_token(42))

        assert payload["sub"] == "42"
        assert get_subject_user_id(payload) == 42
        assert "exp" in payload

    def test_expired_token(self):
        token = create_user_token(42, expires_delta=timedelta(seconds=-1))

        with pytest.raises(ValueError):
            verify_token(token)

    def test_garbage_token(self):
        with pytest.raises(ValueError):
            verify_token("not.a.token")

    @pytest.mark.parametrize("payload", [{}, {"sub": "abc"}])
    def test_subject_must_be_a_user_id(self, payload):
        with pytest.raises(ValueError):
            get_subject_user_id(payload)

    def test_custom_claims_are_kept(self):
        payload = verify_token(create_access_token({"sub": "7", "scope": "ops"}))

        assert payload["scope"] == "ops"
