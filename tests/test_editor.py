"""Tests for per-user override editing."""

from __future__ import annotations

import pytest

from clinicaccess import (
    AccessLevel,
    InMemoryRecordStore,
    RoleRegistry,
    Tabs,
    User,
    UserPermissionEditor,
    resolve,
)


@pytest.fixture
def editor(store: InMemoryRecordStore, registry: RoleRegistry) -> UserPermissionEditor:
    return UserPermissionEditor(store, registry)


async def _load(store: InMemoryRecordStore, user_id: str) -> User:
    return User.model_validate(await store.get("profiles", user_id))


class TestSetUserOverride:
    """set_user_override tests."""

    @pytest.mark.asyncio
    async def test_set_override(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        result = await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "view")
        assert result.ok, result.error
        assert result.value.tab_access == {Tabs.FINANCE: AccessLevel.VIEW}

        user = await _load(store, "rec-1")
        assert resolve(user, Tabs.FINANCE) is AccessLevel.VIEW

    @pytest.mark.asyncio
    async def test_explicit_none_downgrades(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        await editor.set_user_override(director, "fin-1", Tabs.FINANCE, "none")
        user = await _load(store, "fin-1")
        assert resolve(user, Tabs.FINANCE) is AccessLevel.NONE

    @pytest.mark.asyncio
    async def test_clear_restores_default(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        before = resolve(await _load(store, "fin-1"), Tabs.FINANCE)

        await editor.set_user_override(director, "fin-1", Tabs.FINANCE, "view")
        assert resolve(await _load(store, "fin-1"), Tabs.FINANCE) is AccessLevel.VIEW

        result = await editor.set_user_override(director, "fin-1", Tabs.FINANCE, "default")
        assert result.ok
        user = await _load(store, "fin-1")
        assert user.tab_access is None
        assert resolve(user, Tabs.FINANCE) is before

    @pytest.mark.asyncio
    async def test_empty_map_stored_as_none(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        await editor.set_user_override(director, "rec-1", Tabs.REPORTS, "view")
        await editor.set_user_override(director, "rec-1", Tabs.REPORTS, "default")
        record = await store.get("profiles", "rec-1")
        assert record["tabAccess"] is None

    @pytest.mark.asyncio
    async def test_change_history_full_maps(self, editor: UserPermissionEditor, director: User) -> None:
        await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "view")
        result = await editor.set_user_override(director, "rec-1", Tabs.REPORTS, "edit")

        history = result.value.change_history
        assert len(history) == 2
        last = history[-1]
        assert last.changed_by == "Dr. Ana"
        assert last.changed_by_id == "dir-1"
        assert len(last.changes) == 1
        change = last.changes[0]
        assert change.field == "tabAccess"
        assert change.old_value == {"finance": "view"}
        assert change.new_value == {"finance": "view", "reports": "edit"}

    @pytest.mark.asyncio
    async def test_history_is_append_only(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "view")
        first = (await store.get("profiles", "rec-1"))["changeHistory"][0]
        await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "default")
        history = (await store.get("profiles", "rec-1"))["changeHistory"]
        assert history[0] == first
        assert history[1]["changes"][0]["oldValue"] == {"finance": "view"}
        assert history[1]["changes"][0]["newValue"] is None

    @pytest.mark.asyncio
    async def test_noop_records_nothing(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        result = await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "default")
        assert result.ok
        record = await store.get("profiles", "rec-1")
        assert record.get("changeHistory", []) == []
        assert record["version"] == 1

    @pytest.mark.asyncio
    async def test_non_director_denied(self, editor: UserPermissionEditor, store: InMemoryRecordStore, receptionist: User) -> None:
        result = await editor.set_user_override(receptionist, "fin-1", Tabs.FINANCE, "none")
        assert result.error_code == "PERMISSION_DENIED"
        assert (await _load(store, "fin-1")).tab_access is None

    @pytest.mark.asyncio
    async def test_director_cannot_edit_self(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        result = await editor.set_user_override(director, "dir-1", Tabs.FINANCE, "none")
        assert result.error_code == "SELF_MODIFICATION"
        assert (await _load(store, "dir-1")).tab_access is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, editor: UserPermissionEditor, director: User) -> None:
        result = await editor.set_user_override(director, "nobody", Tabs.FINANCE, "view")
        assert result.error_code == "NOT_FOUND"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tab_id, level", [("payroll", "view"), (Tabs.FINANCE, "admin"), (Tabs.FINANCE, None)])
    async def test_invalid_input(self, editor: UserPermissionEditor, director: User, tab_id, level) -> None:
        result = await editor.set_user_override(director, "rec-1", tab_id, level)
        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, store: InMemoryRecordStore, registry: RoleRegistry, director: User) -> None:
        class RacingStore(InMemoryRecordStore):
            async def get(self, collection, record_id):
                record = await super().get(collection, record_id)
                if record is not None:
                    await super().update(collection, record_id, {"name": "Renamed"})
                return record

        racing = RacingStore({"profiles": [await store.get("profiles", "rec-1")]})
        editor = UserPermissionEditor(racing, registry)
        result = await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "view")
        assert result.error_code == "CONFLICT"
        stored = await InMemoryRecordStore.get(racing, "profiles", "rec-1")
        assert stored.get("tabAccess") is None


class TestReplaceUserOverrides:
    """replace_user_overrides tests."""

    @pytest.mark.asyncio
    async def test_replace(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "view")
        result = await editor.replace_user_overrides(
            director,
            "rec-1",
            {Tabs.FINANCE: "default", Tabs.INVENTORY: "edit", Tabs.REPORTS: "none"},
        )
        assert result.ok
        user = await _load(store, "rec-1")
        assert user.tab_access == {Tabs.INVENTORY: AccessLevel.EDIT, Tabs.REPORTS: AccessLevel.NONE}
        assert len(user.change_history) == 2

    @pytest.mark.asyncio
    async def test_all_default_clears(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        await editor.set_user_override(director, "rec-1", Tabs.FINANCE, "view")
        await editor.replace_user_overrides(director, "rec-1", {Tabs.FINANCE: "default"})
        assert (await _load(store, "rec-1")).tab_access is None

    @pytest.mark.asyncio
    async def test_self_protection(self, editor: UserPermissionEditor, director: User) -> None:
        result = await editor.replace_user_overrides(director, "dir-1", {})
        assert result.error_code == "SELF_MODIFICATION"

    @pytest.mark.asyncio
    async def test_invalid_entry_rejects_whole_map(self, editor: UserPermissionEditor, store: InMemoryRecordStore, director: User) -> None:
        result = await editor.replace_user_overrides(director, "rec-1", {Tabs.FINANCE: "view", "payroll": "edit"})
        assert result.error_code == "VALIDATION_ERROR"
        assert (await _load(store, "rec-1")).tab_access is None


_LEGACY_ENTRY = {
    "id": 1700000000000,
    "date": "2023-11-14T22:13:20.000Z",
    "changedBy": "Sistema",
    "note": "legacy",
    "changes": [{"field": "password", "oldValue": "********", "newValue": "********"}],
}


class TestStoredProfiles:
    """Profiles written by onboarding or earlier app versions."""

    @pytest.mark.asyncio
    async def test_legacy_history_entry_kept_verbatim(self, registry: RoleRegistry, director: User) -> None:
        store = InMemoryRecordStore(
            {"profiles": [{"id": "fin-1", "name": "Caio", "role": "financeiro", "changeHistory": [_LEGACY_ENTRY]}]}
        )
        result = await UserPermissionEditor(store, registry).set_user_override(director, "fin-1", Tabs.FINANCE, "view")

        assert result.ok, result.error
        history = (await store.get("profiles", "fin-1"))["changeHistory"]
        assert len(history) == 2
        assert history[0] == _LEGACY_ENTRY
        assert history[1]["changes"][0]["newValue"] == {"finance": "view"}
        assert result.value.change_history[0].id == 1700000000000

    @pytest.mark.asyncio
    async def test_malformed_profile_is_storage_failure(self, registry: RoleRegistry, director: User) -> None:
        store = InMemoryRecordStore({"profiles": [{"id": "fin-1", "role": "financeiro", "changeHistory": "oops"}]})
        result = await UserPermissionEditor(store, registry).set_user_override(director, "fin-1", Tabs.FINANCE, "view")
        assert result.error_code == "STORAGE_ERROR"

    @pytest.mark.asyncio
    async def test_unversioned_profile_is_writable(self, store: InMemoryRecordStore, editor: UserPermissionEditor, director: User) -> None:
        del store._collections["profiles"]["fin-1"]["version"]

        for level in ("view", "none", "edit"):
            result = await editor.set_user_override(director, "fin-1", Tabs.FINANCE, level)
            assert result.ok, result.error

        record = await store.get("profiles", "fin-1")
        assert record["tabAccess"] == {"finance": "edit"}
        assert record["version"] == 3
        assert len(record["changeHistory"]) == 3
