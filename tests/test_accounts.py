"""
Admin accounts, password hashing and the JSON key-value storage.
"""
from __future__ import annotations

import json

import pytest

from cms.core.config import Settings
from cms.core.security import hash_password, is_hashed, verify_password
from cms.domain.validation import ValidationFailure
from cms.repositories.local_storage import ADMIN_CREDENTIALS_KEY, ADMIN_USERS_KEY, LocalStorage
from cms.services.account_service import (
    AccountService,
    InvalidCredentialsError,
    SelfRemovalError,
    UnknownAdminError,
)
from cms.services.panel_config import PanelConfigService
from cms.services.session_guard import issue_admin_session, load_admin_session


@pytest.fixture()
def storage(store, tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "storage.json")


def _settings(**overrides) -> Settings:
    values = dict(
        app_env="test",
        database_url="sqlite://",
        storage_path="unused.json",
        admin_email="",
        admin_password="",
        admin_session_ttl_seconds=0,
        login_rate_limit=10,
        login_rate_window_seconds=60,
        log_level="INFO",
        public_site_origins=(),
        panel_state_idle_seconds=0,
    )
    values.update(overrides)
    return Settings(**values)


def test_hash_and_verify():
    stored = hash_password("segredo")
    assert is_hashed(stored)
    assert verify_password("segredo", stored)
    assert not verify_password("outra", stored)
    assert not verify_password("segredo", "argon2$lixo")
    assert not verify_password("x", "")


def test_legacy_plaintext_credentials_still_accepted():
    assert verify_password("123456", "123456")
    assert not verify_password("1234567", "123456")


def test_storage_roundtrip_and_atomic_file(storage):
    storage.set("chave", {"a": 1})
    assert storage.get("chave") == {"a": 1}
    storage.remove("chave")
    assert storage.get("chave") is None
    assert not storage.path.with_suffix(".json.tmp").exists()


def test_storage_ignores_corrupt_file(storage):
    storage.path.write_text("{nao e json", encoding="utf-8")
    assert storage.load() == {}
    assert storage.admin_users() == []


def test_add_and_authenticate_admin(storage):
    accounts = AccountService(storage)
    email = accounts.add_admin("Admin@Example.com", "segredo123")

    assert email == "admin@example.com"
    assert accounts.authenticate(" ADMIN@example.com", "segredo123") == "admin@example.com"
    with pytest.raises(InvalidCredentialsError):
        accounts.authenticate("admin@example.com", "errada")
    raw = json.loads(storage.path.read_text(encoding="utf-8"))
    assert raw[ADMIN_USERS_KEY] == ["admin@example.com"]
    assert raw[ADMIN_CREDENTIALS_KEY]["admin@example.com"].startswith("argon2$")


def test_add_admin_validates_before_saving(storage):
    accounts = AccountService(storage)
    with pytest.raises(ValidationFailure):
        accounts.add_admin("sem-arroba", "segredo123")
    assert accounts.list_admins() == []


def test_remove_admin_rules(storage):
    accounts = AccountService(storage)
    accounts.add_admin("a@example.com", "segredo123")
    accounts.add_admin("b@example.com", "segredo123")

    with pytest.raises(SelfRemovalError):
        accounts.remove_admin("a@example.com", current_email="a@example.com")
    with pytest.raises(UnknownAdminError):
        accounts.remove_admin("c@example.com", current_email="a@example.com")

    accounts.remove_admin("B@example.com", current_email="a@example.com")
    assert accounts.list_admins() == ["a@example.com"]
    with pytest.raises(InvalidCredentialsError):
        accounts.authenticate("b@example.com", "segredo123")


def test_bootstrap_admin_only_when_empty(storage):
    accounts = AccountService(storage)
    assert accounts.ensure_bootstrap_admin(_settings()) is False
    assert accounts.ensure_bootstrap_admin(_settings(admin_email="root@example.com", admin_password="segredo123"))
    assert accounts.list_admins() == ["root@example.com"]
    assert accounts.ensure_bootstrap_admin(_settings(admin_email="outro@example.com", admin_password="segredo123")) is False


def test_partner_form_url_config(storage):
    config = PanelConfigService(storage)
    assert config.partner_form_url() == ""
    config.save_partner_form_url(" https://forms.example.com/parceiros ")
    assert config.partner_form_url() == "https://forms.example.com/parceiros"
    with pytest.raises(ValidationFailure):
        config.save_partner_form_url("nao-e-url")
    assert config.partner_form_url() == "https://forms.example.com/parceiros"


def test_removing_admin_revokes_open_sessions(storage):
    accounts = AccountService(storage)
    accounts.add_admin("b@example.com", "segredo123")
    token, _ = issue_admin_session("b@example.com")

    revoked = accounts.remove_admin("b@example.com", current_email="")

    assert revoked == [token]
    assert accounts.list_admins() == []
    assert load_admin_session(token) is None
