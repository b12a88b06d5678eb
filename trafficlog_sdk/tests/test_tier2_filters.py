"""Tests for tier2_filters modules."""
from __future__ import annotations

import json
import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from trafficlog_sdk import (
    ChainedBodyFilter,
    FilterConfig,
    InvalidModificationError,
    JsonPathBodyFilter,
    JsonPropertyBodyFilter,
    MalformedDocumentError,
    PathSyntaxError,
    UnsupportedDynamicTargetError,
    access_token,
    default_json_filter,
    json_path,
    merge,
    no_op,
    replace_json_string_property,
    replace_primitive_json_property,
)
from trafficlog_sdk.tier0_core import logging as logging_module
from trafficlog_sdk.tier0_core.config import _reset_config

JSON = "application/json"


def without_whitespace(text: str) -> str:
    return "".join(text.split())


# ── json_path: delete ──────────────────────────────────────────────────────

class TestJsonPathDelete:
    def test_deletes_number_and_string(self, student):
        unit = json_path("$.id").delete().try_merge(json_path("$.name").delete())
        assert unit is not None
        result = json.loads(unit.apply(JSON, student))
        assert "id" not in result
        assert "name" not in result
        assert set(result) == {"friends", "grades"}

    def test_deletes_array(self, student):
        result = json.loads(json_path("$.friends").delete().apply(JSON, student))
        assert "friends" not in result

    def test_deletes_object(self, student):
        result = json.loads(json_path("$.grades").delete().apply(JSON, student))
        assert "grades" not in result

    def test_deletes_every_array_element(self, student):
        result = json.loads(json_path("$.friends[*]").delete().apply(JSON, student))
        assert result["friends"] == []

    def test_does_not_fail_on_missing_path(self, student):
        unit = json_path("$.friends.missing").delete()
        assert without_whitespace(unit.apply(JSON, student)) == without_whitespace(student)

    def test_root_delete_rejected_when_built(self):
        with pytest.raises(InvalidModificationError):
            json_path("$").delete()


# ── json_path: static replace ──────────────────────────────────────────────

class TestJsonPathReplace:
    def test_replaces_array_with_string(self, student):
        result = json.loads(json_path("$.friends").replace("XXX").apply(JSON, student))
        assert result["friends"] == "XXX"

    def test_replaces_number_with_string(self, student):
        result = json.loads(json_path("$.id").replace("XXX").apply(JSON, student))
        assert result["id"] == "XXX"

    def test_replaces_array_with_number(self, student):
        output = json_path("$.friends").replace(0.0).apply(JSON, student)
        assert '"friends":0,' in output
        assert json.loads(output)["friends"] == 0

    def test_replaces_number_with_number(self, student):
        result = json.loads(json_path("$.grades.English").replace(1.0).apply(JSON, student))
        assert result["grades"]["English"] == 1

    def test_replaces_array_with_boolean(self, student):
        result = json.loads(json_path("$.friends").replace(False).apply(JSON, student))
        assert result["friends"] is False

    def test_replaces_number_with_boolean(self, student):
        result = json.loads(json_path("$.id").replace(True).apply(JSON, student))
        assert result["id"] is True

    def test_replaces_every_object_value(self, student):
        result = json.loads(json_path("$.grades.*").replace("XXX").apply(JSON, student))
        assert result["grades"] == {
            "Math": "XXX", "English": "XXX", "Science": "XXX", "PE": "XXX",
        }


# ── json_path: dynamic replace ─────────────────────────────────────────────

class TestJsonPathReplaceMatches:
    def test_replaces_string_dynamically(self, student):
        unit = json_path("$.name").replace_matches(re.compile(r"^(\w).+"), r"\1.")
        assert json.loads(unit.apply(JSON, student))["name"] == "A."

    def test_replaces_array_elements_independently(self, student):
        unit = json_path("$.friends.*.name").replace_matches(r"^(\w).+", r"\1.")
        result = json.loads(unit.apply(JSON, student))
        assert result["friends"] == [{"id": 2, "name": "B."}, {"id": 3, "name": "C."}]

    def test_falls_back_to_replace_array_as_string(self, student):
        unit = json_path("$.friends").replace_matches(r"([A-Z])[a-z]+", r"\1.")
        result = json.loads(unit.apply(JSON, student))
        assert result["friends"] == '[{"id":2,"name":"B."},{"id":3,"name":"C."}]'

    def test_falls_back_to_replace_object_as_string(self, student):
        unit = json_path("$.grades").replace_matches(r"(\d+)\.\d+", r"\1.X")
        result = json.loads(unit.apply(JSON, student))
        assert result["grades"] == '{"Math":1.X,"English":2.X,"Science":1.X,"PE":4.X}'

    def test_matching_number_becomes_string(self, student):
        unit = json_path("$.id").replace_matches(r"\d", "#")
        assert json.loads(unit.apply(JSON, student))["id"] == "#"

    def test_replaces_string_with_dollar_group_reference(self, student):
        unit = json_path("$.name").replace_matches(r"^(\w).+", "$1.")
        assert json.loads(unit.apply(JSON, student))["name"] == "A."

    def test_replaces_array_elements_with_dollar_group_reference(self, student):
        unit = json_path("$.friends.*.name").replace_matches(r"^(\w).+", "$1.")
        result = json.loads(unit.apply(JSON, student))
        assert [friend["name"] for friend in result["friends"]] == ["B.", "C."]

    def test_leaves_non_matching_number_in_place(self, student):
        unit = json_path("$.id").replace_matches(r"\s+", "XXX")
        output = unit.apply(JSON, student)
        assert json.loads(output)["id"] == 1
        assert output is student

    def test_leaves_non_matching_string_in_place(self, student):
        unit = json_path("$.name").replace_matches(r"\s+", "XXX")
        assert json.loads(unit.apply(JSON, student))["name"] == "Alice"

    def test_rejects_bad_path_when_built(self):
        with pytest.raises(PathSyntaxError):
            json_path("$.friends[").replace_matches(r"\d", "#")


class TestJsonPathTransform:
    def test_replaces_values_dynamically(self, student):
        unit = json_path("$.name").transform(str.upper)
        assert json.loads(unit.apply(JSON, student))["name"] == "ALICE"

    def test_replaces_array_values_dynamically(self, student):
        unit = json_path("$.friends.*.name").transform(str.upper)
        result = json.loads(unit.apply(JSON, student))
        assert [f["name"] for f in result["friends"]] == ["BOB", "CHARLIE"]

    def test_transform_with_pattern(self, student):
        unit = json_path("$.friends.*.name").transform(lambda s: s[::-1], pattern="^B")
        result = json.loads(unit.apply(JSON, student))
        assert [f["name"] for f in result["friends"]] == ["boB", "Charlie"]

    def test_non_string_target_fails_invocation(self, student):
        unit = json_path("$.friends").transform(str.upper)
        with pytest.raises(UnsupportedDynamicTargetError):
            unit.apply(JSON, student)


# ── json_path: gate and failures ───────────────────────────────────────────

class TestJsonPathGate:
    def test_filters_json_only(self, student):
        unit = json_path("$.test").replace("XXX")
        assert unit.apply("application/xml", student) is student

    def test_no_media_type_passes_through(self):
        assert json_path("$.id").delete().apply(None, "not json") == "not json"

    def test_structured_suffix_is_filtered(self, student):
        unit = json_path("$.id").delete()
        result = json.loads(unit.apply("application/problem+json; charset=utf-8", student))
        assert "id" not in result

    def test_malformed_json_raises(self):
        unit = json_path("$.id").delete()
        with pytest.raises(MalformedDocumentError):
            unit.apply(JSON, '{"id": 1, "name": ')

    def test_failing_merged_filter_does_not_return_partial_body(self, student):
        unit = json_path("$.name").delete().try_merge(json_path("$.friends").transform(str.upper))
        with pytest.raises(UnsupportedDynamicTargetError):
            unit.apply(JSON, student)

    def test_pretty_printing_config(self, student):
        unit = json_path("$.friends", FilterConfig(compact=False)).delete()
        output = unit.apply(JSON, student)
        assert output.startswith('{"id": 1, "name": "Alice"')

    def test_unchanged_body_keeps_number_spelling(self):
        body = '{"a": 1.10, "b": 1E5, "c": -0.0}'
        assert json_path("$.missing").delete().apply(JSON, body) is body
        assert json_path("$.a").replace_matches("x", "y").apply(JSON, body) is body

    def test_explicit_config_ignores_invalid_environment(self, monkeypatch, student):
        monkeypatch.setenv("TRAFFICLOG_MAX_PATH_LENGTH", "0")
        monkeypatch.setattr(logging_module, "_configured", False)
        _reset_config()
        unit = json_path("$.id", FilterConfig(max_path_length=1024)).delete()
        assert "id" not in json.loads(unit.apply(JSON, student))

    def test_body_is_reparsed_each_call(self, student):
        unit = json_path("$.friends[0]").delete()
        first = json.loads(unit.apply(JSON, student))
        second = json.loads(unit.apply(JSON, student))
        assert first == second
        assert len(second["friends"]) == 1

    def test_concurrent_use(self, student):
        unit = json_path("$.friends.*.name").transform(str.upper)
        with ThreadPoolExecutor(max_workers=8) as pool:
            outputs = list(pool.map(lambda _: unit.apply(JSON, student), range(64)))
        assert len(set(outputs)) == 1


# ── merging ────────────────────────────────────────────────────────────────

class TestMerge:
    def test_merges_only_with_json_path_body_filter(self):
        unit = json_path("$.test").replace("XXX")
        assert unit.try_merge(access_token()) is None

    def test_merge_keeps_originals_usable(self, student):
        first = json_path("$.id").delete()
        second = json_path("$.name").delete()
        merged = first.try_merge(second)
        assert isinstance(merged, JsonPathBodyFilter)
        assert merged.paths == ["$.id", "$.name"]
        assert first.paths == ["$.id"]
        assert "name" in json.loads(first.apply(JSON, student))
        assert "id" in json.loads(second.apply(JSON, student))

    def test_merge_is_order_preserving(self, student):
        mask = json_path("$.name").replace("X")
        rewrite = json_path("$.name").replace_matches("^X$", "Y")
        assert json.loads(mask.try_merge(rewrite).apply(JSON, student))["name"] == "Y"
        assert json.loads(rewrite.try_merge(mask).apply(JSON, student))["name"] == "X"

    def test_different_configs_do_not_merge(self):
        pretty = json_path("$.id", FilterConfig(compact=False)).delete()
        assert pretty.try_merge(json_path("$.name").delete()) is None

    def test_merge_function_chains_unmergeable_filters(self):
        body = '{"id": 1, "access_token": "secret"}'
        combined = merge(json_path("$.id").delete(), access_token())
        assert isinstance(combined, ChainedBodyFilter)
        assert json.loads(combined.apply(JSON, body)) == {"access_token": "XXX"}

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            ChainedBodyFilter(())

    def test_merge_function_merges_when_possible(self):
        combined = merge(json_path("$.id").delete(), json_path("$.name").delete())
        assert isinstance(combined, JsonPathBodyFilter)

    def test_chain_folds_compatible_filter_into_last_step(self):
        chain = merge(json_path("$.id").delete(), access_token())
        extended = merge(chain, replace_json_string_property({"password"}, "XXX"))
        assert isinstance(extended, ChainedBodyFilter)
        assert len(extended.filters) == 2
        assert "password" in extended.filters[1].names

    def test_chain_appends_incompatible_filter(self):
        chain = merge(json_path("$.id").delete(), access_token())
        extended = merge(chain, json_path("$.name").delete())
        assert len(extended.filters) == 3

    def test_chains_merge_with_chains(self, student):
        left = merge(json_path("$.id").delete(), access_token())
        right = merge(json_path("$.name").delete(), replace_json_string_property({"x"}, "XXX"))
        combined = merge(left, right)
        assert isinstance(combined, ChainedBodyFilter)
        assert len(combined.filters) == 4
        result = json.loads(combined.apply(JSON, student))
        assert "id" not in result
        assert "name" not in result

    def test_no_op_is_identity(self, student):
        unit = json_path("$.id").delete()
        assert merge(no_op(), unit) is unit
        assert merge(unit, no_op()) is unit
        assert no_op().apply(JSON, student) is student


# ── property filters ───────────────────────────────────────────────────────

class TestJsonPropertyFilters:
    def test_access_token(self):
        body = '{"access_token": "abc.def", "nested": {"refresh_token": "x\\"y"}, "name": "Alice"}'
        result = json.loads(access_token().apply(JSON, body))
        assert result["access_token"] == "XXX"
        assert result["nested"]["refresh_token"] == "XXX"
        assert result["name"] == "Alice"

    def test_default_json_filter_masks_tokens(self):
        body = '{"id_token":"eyJ"}'
        assert default_json_filter().apply(JSON, body) == '{"id_token":"XXX"}'

    def test_replace_primitive_property(self, student):
        unit = replace_primitive_json_property({"id"}, "XXX")
        result = json.loads(unit.apply(JSON, student))
        assert result["id"] == "XXX"
        assert [f["id"] for f in result["friends"]] == ["XXX", "XXX"]
        assert result["name"] == "Alice"

    def test_primitive_filter_ignores_strings(self):
        unit = replace_primitive_json_property({"id"}, "XXX")
        assert unit.apply(JSON, '{"id": "abc"}') == '{"id": "abc"}'

    def test_string_filter_ignores_numbers(self):
        unit = replace_json_string_property({"id"}, "XXX")
        assert unit.apply(JSON, '{"id": 12}') == '{"id": 12}'

    def test_works_on_truncated_json(self):
        body = '{"access_token": "abc", "data": [1, 2'
        assert access_token().apply(JSON, body) == '{"access_token": "XXX", "data": [1, 2'

    def test_non_json_passes_through(self):
        body = "access_token=abc"
        assert access_token().apply("application/x-www-form-urlencoded", body) is body

    def test_same_kind_merges(self):
        merged = replace_json_string_property({"a"}, "XXX").try_merge(
            replace_json_string_property({"b"}, "XXX")
        )
        assert isinstance(merged, JsonPropertyBodyFilter)
        assert merged.names == frozenset({"a", "b"})

    def test_different_replacement_does_not_merge(self):
        first = replace_json_string_property({"a"}, "XXX")
        assert first.try_merge(replace_json_string_property({"b"}, "***")) is None
        assert first.try_merge(replace_primitive_json_property({"b"}, "XXX")) is None

    def test_does_not_merge_with_json_path(self):
        assert access_token().try_merge(json_path("$.id").delete()) is None

    def test_empty_name_set_matches_nothing(self, student):
        assert replace_json_string_property(set(), "XXX").apply(JSON, student) == student
