"""Tests for the local profile picker (identity)."""

import pytest

from honours_tracker.identity import IdentityService, derive_user_id, normalize_name
from honours_tracker.models import ProgramType, SubjectType


class TestUserId:
    def test_derive_user_id(self):
        assert derive_user_id("Ann Lee", "pw1") == "annlee_pw1"

    def test_normalization_ignores_case_and_whitespace(self):
        assert normalize_name("  ANN\tLee ") == "annlee"
        assert derive_user_id(" ann  LEE", "pw1") == derive_user_id("Ann Lee", "pw1")

    def test_password_is_case_sensitive(self):
        assert derive_user_id("Ann", "PW") != derive_user_id("Ann", "pw")


class TestLogin:
    def test_login_is_deterministic(self, identity):
        identity.login("Ann Lee", "pw1", ProgramType.BA_HONORS, SubjectType.BANGLA)
        first = identity.current_user.id
        identity.logout()
        identity.login("Ann Lee", "pw1", ProgramType.BA_HONORS, SubjectType.BANGLA)
        assert identity.current_user.id == first == "annlee_pw1"

    def test_login_persists_user(self, identity, storage):
        assert identity.login("Ann Lee", "pw1", "BA Honours", "History") is True
        restored = IdentityService(storage).current_user
        assert restored is not None
        assert restored.id == "annlee_pw1"
        assert restored.program is ProgramType.BA_HONORS
        assert restored.subject is SubjectType.HISTORY

    def test_empty_password_is_rejected(self, identity, storage):
        assert identity.login("Ann Lee", "", ProgramType.BA_HONORS, SubjectType.BANGLA) is False
        assert identity.current_user is None
        assert storage.load("user", None) is None

    def test_unknown_program_raises(self, identity):
        with pytest.raises(ValueError):
            identity.login("Ann", "pw1", "MBA", SubjectType.BANGLA)
        assert identity.current_user is None

    def test_logout_persists_empty_state(self, identity, storage):
        identity.login("Ann", "pw1", ProgramType.BSS_HONORS, SubjectType.SOCIOLOGY)
        identity.logout()
        assert identity.is_authenticated is False
        assert IdentityService(storage).current_user is None

    def test_listeners_are_notified(self, identity):
        seen = []
        identity.subscribe(seen.append)
        identity.login("Ann", "pw1", ProgramType.BA_HONORS, SubjectType.BANGLA)
        identity.logout()
        assert [u.id if u else None for u in seen] == ["ann_pw1", None]

    def test_malformed_stored_user_is_ignored(self, storage):
        storage.save("user", {"id": "x", "password": "p", "program": "???", "subject": "History"})
        assert IdentityService(storage).current_user is None
