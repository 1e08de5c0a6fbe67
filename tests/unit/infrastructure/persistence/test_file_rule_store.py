"""Tests for FileRuleStore."""

import json

import pytest

from voicerules.core.domain.errors import DuplicateTriggerError, NotFoundError, ValidationError
from voicerules.core.domain.rule import TextResponse, TriggerType, UnknownResponse
from voicerules.core.domain.settings import AppSettings
from voicerules.infrastructure.persistence import FileRuleStore


def _payload(keyword="open light", trigger_type="contains", text="OK"):
    return {
        "trigger": {"type": trigger_type, "keyword": keyword},
        "response": {"type": "text", "text": text},
    }


class TestInitialization:
    def test_creates_files(self, tmp_path) -> None:
        store = FileRuleStore(tmp_path / "fresh")
        assert json.loads(store.rules_path.read_text()) == []
        assert json.loads(store.settings_path.read_text()) == AppSettings().to_dict()
        assert store.rules_path.name == "custom-rules.json"
        assert store.settings_path.name == "custom-settings.json"

    async def test_existing_files_kept(self, tmp_path) -> None:
        (tmp_path / "custom-rules.json").write_text(
            json.dumps(
                [
                    {
                        "id": "keep",
                        "trigger": {"type": "exact", "keyword": "hi"},
                        "response": {"type": "text", "text": "hello"},
                        "enabled": True,
                        "createdAt": 1,
                    }
                ]
            )
        )
        store = FileRuleStore(tmp_path)
        rules = await store.list_rules()
        assert [r.id for r in rules] == ["keep"]


class TestCreate:
    async def test_assigns_id_and_created_at(self, store) -> None:
        rule = await store.create_rule(_payload())

        assert rule.id
        assert rule.created_at > 0
        assert rule.updated_at is None
        assert rule.trigger.type is TriggerType.CONTAINS
        assert rule.response == TextResponse(text="OK")

    async def test_persists_camel_case(self, store) -> None:
        rule = await store.create_rule(_payload())
        stored = json.loads(store.rules_path.read_text())
        assert stored[0]["id"] == rule.id
        assert stored[0]["createdAt"] == rule.created_at
        assert stored[0]["response"]["abortXiaoAI"] is False

    async def test_rejects_duplicate_trigger(self, store) -> None:
        await store.create_rule(_payload())
        with pytest.raises(DuplicateTriggerError, match="already exists"):
            await store.create_rule(_payload(text="other"))

    async def test_same_keyword_different_type_allowed(self, store) -> None:
        await store.create_rule(_payload(trigger_type="contains"))
        await store.create_rule(_payload(trigger_type="exact"))
        assert len(await store.list_rules()) == 2

    @pytest.mark.parametrize(
        "payload",
        [
            {"trigger": {"type": "contains"}, "response": {"type": "text"}},
            {"trigger": {"type": "contains", "keyword": "x"}, "response": {}},
            {},
        ],
    )
    async def test_requires_keyword_and_type(self, store, payload) -> None:
        with pytest.raises(ValidationError, match="required"):
            await store.create_rule(payload)


class TestUpdate:
    async def test_keeps_identity_and_sets_updated_at(self, store) -> None:
        rule = await store.create_rule(_payload())
        updated = await store.update_rule(rule.id, _payload(text="Changed"))

        assert updated.id == rule.id
        assert updated.created_at == rule.created_at
        assert updated.updated_at is not None
        assert (await store.get_rule(rule.id)).response == TextResponse(text="Changed")

    async def test_may_keep_its_own_trigger(self, store) -> None:
        rule = await store.create_rule(_payload())
        await store.update_rule(rule.id, _payload())

    async def test_cannot_take_another_rules_trigger(self, store) -> None:
        await store.create_rule(_payload("a"))
        second = await store.create_rule(_payload("b"))
        with pytest.raises(DuplicateTriggerError):
            await store.update_rule(second.id, _payload("a"))

    async def test_unknown_id(self, store) -> None:
        with pytest.raises(NotFoundError):
            await store.update_rule("missing", _payload())


class TestToggleAndDelete:
    async def test_set_enabled_in_place(self, store) -> None:
        first = await store.create_rule(_payload("a"))
        await store.create_rule(_payload("b"))

        await store.set_enabled(first.id, False)

        rules = await store.list_rules()
        assert [r.trigger.keyword for r in rules] == ["a", "b"]
        assert rules[0].enabled is False
        assert [r.trigger.keyword for r in await store.enabled_rules()] == ["b"]

    async def test_delete(self, store) -> None:
        rule = await store.create_rule(_payload())
        await store.delete_rule(rule.id)
        assert await store.list_rules() == []
        with pytest.raises(NotFoundError):
            await store.delete_rule(rule.id)

    async def test_get_unknown(self, store) -> None:
        with pytest.raises(NotFoundError, match="Rule not found"):
            await store.get_rule("nope")


class TestLoading:
    async def test_invalid_records_skipped(self, store) -> None:
        store.rules_path.write_text(
            json.dumps(
                [
                    {"id": "bad", "trigger": {"type": "regex", "keyword": "x"}, "response": {}},
                    {
                        "id": "good",
                        "trigger": {"type": "exact", "keyword": "x"},
                        "response": {"type": "text", "text": "y"},
                    },
                ]
            )
        )
        assert [r.id for r in await store.list_rules()] == ["good"]

    async def test_invalid_records_survive_every_write(self, store) -> None:
        unparseable = {"id": "keep-me", "trigger": {"type": "regex", "keyword": "x"}, "response": {}}
        store.rules_path.write_text(json.dumps([unparseable, "not a record"]))

        rule = await store.create_rule(_payload("a"))
        await store.update_rule(rule.id, _payload("a", text="changed"))
        await store.set_enabled(rule.id, False)
        stored = json.loads(store.rules_path.read_text())
        assert stored[:2] == [unparseable, "not a record"]
        assert stored[2]["id"] == rule.id

        await store.delete_rule(rule.id)
        assert json.loads(store.rules_path.read_text()) == [unparseable, "not a record"]
        assert await store.list_rules() == []

    async def test_invalid_record_never_resolves_by_id(self, store) -> None:
        store.rules_path.write_text(
            json.dumps([{"id": "bad", "trigger": {"type": "regex", "keyword": "x"}}])
        )
        with pytest.raises(NotFoundError):
            await store.delete_rule("bad")

    async def test_unknown_response_kind_survives_rewrite(self, store) -> None:
        store.rules_path.write_text(
            json.dumps(
                [
                    {
                        "id": "future",
                        "trigger": {"type": "exact", "keyword": "x"},
                        "response": {"type": "hologram", "beam": 3},
                        "enabled": True,
                        "createdAt": 1,
                    }
                ]
            )
        )
        rule = (await store.list_rules())[0]
        assert isinstance(rule.response, UnknownResponse)

        await store.create_rule(_payload("other"))

        stored = json.loads(store.rules_path.read_text())
        assert stored[0]["response"] == {"type": "hologram", "beam": 3}

    async def test_corrupt_file_reads_as_empty(self, store) -> None:
        store.rules_path.write_text("{not json")
        assert await store.list_rules() == []


class TestSettings:
    async def test_round_trip(self, store) -> None:
        settings = AppSettings(call_ai_keywords=["hey"], history_max_length=3)
        await store.save_settings(settings)
        assert await store.load_settings() == settings

    async def test_corrupt_settings_fall_back_to_defaults(self, store) -> None:
        store.settings_path.write_text("[]")
        assert await store.load_settings() == AppSettings()
