import json

import pytest

from letmein.client import profile_manager as pm_module
from letmein.core.errors import (
    DocumentError, DocumentExistsError, DocumentNotFoundError, LetmeinError, MasterSecretError,
    ProfileMatchError, ProfileValidationError, VerificationError,
)
from letmein.core.generator import generate_password, verify_code
from letmein.core.models import ProfileOptions


def read_doc(store):
    return json.loads(store.path.read_text(encoding="utf-8"))


def test_init_writes_document(manager, store, master):
    client = manager.init_client("  alice ", master)
    assert client.name == "alice"
    doc = read_doc(store)
    assert doc == {"name": "alice", "verify": verify_code(master)}
    assert store.path.read_text(encoding="utf-8").endswith("\n")
    assert oct(store.path.stat().st_mode & 0o777) == oct(0o600)


def test_init_refuses_existing_document(ready_manager, master):
    with pytest.raises(DocumentExistsError):
        ready_manager.init_client("alice", master)


def test_init_requires_name_and_valid_master(manager, store, master):
    with pytest.raises(LetmeinError):
        manager.init_client("   ", master)
    with pytest.raises(MasterSecretError):
        manager.init_client("alice", "")
    assert not store.exists()


def test_operations_need_a_document(manager, master):
    with pytest.raises(DocumentNotFoundError):
        manager.list_profiles(master)


def test_corrupt_document(manager, store, master):
    store.path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DocumentError):
        manager.list_profiles(master)


def test_undecodable_document(manager, store, master):
    store.path.write_bytes(b'{"name": "\xff\xfe", "verify": "abcd"}')
    with pytest.raises(DocumentError) as exc:
        manager.list_profiles(master)
    assert "error reading" in str(exc.value)


def test_wrong_master_aborts_before_generation(ready_manager, store, master, monkeypatch):
    ready_manager.create_profile(master, "Mail")
    before = store.path.read_bytes()

    calls = []
    monkeypatch.setattr(pm_module, "generate_password", lambda *a: calls.append(a) or "x")
    with pytest.raises(VerificationError):
        ready_manager.list_profiles("wrong horse battery staple")
    with pytest.raises(VerificationError):
        ready_manager.create_profile("wrong horse battery staple", "Bank")
    assert calls == []
    assert store.path.read_bytes() == before


def test_missing_verify_is_filled_in(store, manager, master):
    store.path.write_text(json.dumps({"name": "alice", "verify": ""}), encoding="utf-8")
    assert manager.list_profiles(master) == []
    doc = read_doc(store)
    assert doc["verify"] == verify_code(master)
    assert "modified_at" in doc


def test_create_profile(ready_manager, store, master, clock):
    profile, password = ready_manager.create_profile(
        master, "Mail", ProfileOptions(username="Alice@Mail.com", url="mail.com", length=20))
    assert password == generate_password(master, profile)
    assert len(password) == 20
    assert profile.username == "alice@mail.com"
    assert profile.uuid
    assert profile.modified_at == clock.now

    doc = read_doc(store)
    assert doc["modified_at"]
    assert doc["profiles"][0]["uuid"] == profile.uuid
    assert doc["profiles"][0]["modified_at"]


def test_create_refuses_matching_name(ready_manager, store, master):
    ready_manager.create_profile(master, "GMail")
    before = store.path.read_bytes()
    with pytest.raises(ProfileMatchError) as exc:
        ready_manager.create_profile(master, "mail")
    assert [p.name for p in exc.value.matches] == ["GMail"]
    assert store.path.read_bytes() == before


def test_invalid_create_leaves_document(ready_manager, store, master):
    before = store.path.read_bytes()
    with pytest.raises(ProfileValidationError):
        ready_manager.create_profile(master, "Mail", ProfileOptions(length=99))
    assert store.path.read_bytes() == before


@pytest.mark.parametrize("length", [0, -1])
def test_create_with_zero_length_is_rejected(ready_manager, store, master, length):
    before = store.path.read_bytes()
    with pytest.raises(ProfileValidationError) as exc:
        ready_manager.create_profile(master, "Mail", ProfileOptions(length=length))
    assert exc.value.field == "length"
    assert store.path.read_bytes() == before


def test_list_profiles(ready_manager, master):
    ready_manager.create_profile(master, "Mail")
    ready_manager.create_profile(master, "Bank")
    listed = ready_manager.list_profiles(master)
    assert sorted(p.name for p, _ in listed) == ["Bank", "Mail"]
    for profile, password in listed:
        assert password == generate_password(master, profile)
    assert [p.name for p, _ in ready_manager.list_profiles(master, "ban")] == ["Bank"]


def test_update_profile(ready_manager, store, master):
    created, old_password = ready_manager.create_profile(master, "Mail", ProfileOptions(url="mail.com"))
    updated, password = ready_manager.update_profile(master, "mail", ProfileOptions(generation=1))
    assert updated.uuid == created.uuid
    assert updated.generation == 1
    assert updated.url == "mail.com"
    assert password != old_password

    profiles = read_doc(store)["profiles"]
    assert len(profiles) == 1
    assert profiles[0]["generation"] == 1


def test_update_needs_unique_match(ready_manager, master):
    ready_manager.create_profile(master, "Mail")
    ready_manager.create_profile(master, "Bank")
    with pytest.raises(ProfileMatchError) as exc:
        ready_manager.update_profile(master, "a", ProfileOptions(length=8))
    assert len(exc.value.matches) == 2
    with pytest.raises(ProfileMatchError):
        ready_manager.update_profile(master, "nothing", ProfileOptions(length=8))


def test_invalid_update_leaves_document(ready_manager, store, master):
    ready_manager.create_profile(master, "Mail")
    before = store.path.read_bytes()
    with pytest.raises(ProfileValidationError):
        ready_manager.update_profile(master, "Mail", ProfileOptions(
            lower=False, upper=False, digits=False, punctuation=False))
    assert store.path.read_bytes() == before


def test_update_cannot_delete(ready_manager, store, master):
    ready_manager.create_profile(master, "Mail")
    before = store.path.read_bytes()
    with pytest.raises(ProfileValidationError) as exc:
        ready_manager.update_profile(master, "Mail", ProfileOptions(length=0))
    assert exc.value.field == "length"
    assert store.path.read_bytes() == before


def test_delete_profile(ready_manager, store, master):
    created, _ = ready_manager.create_profile(master, "Mail")
    summary = ready_manager.delete_profile(master, "Mail")
    assert summary.startswith("*[Mail]")

    doc = read_doc(store)
    assert len(doc["profiles"]) == 1
    tombstone = doc["profiles"][0]
    assert set(tombstone) == {"uuid", "modified_at"}
    assert tombstone["uuid"] == created.uuid

    assert ready_manager.list_profiles(master) == []
    with pytest.raises(ProfileMatchError):
        ready_manager.delete_profile(master, "Mail")
