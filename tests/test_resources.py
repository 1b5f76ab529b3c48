"""Tests for framework resource loading and definition parsing."""

import pytest

from call_analyzer.analysis.definitions import (
    VALID_FRAMEWORKS,
    fallback_definition,
    is_valid_framework,
    parse_definition,
)
from call_analyzer.analysis.resources import (
    DEFINITION_FILE,
    METHODOLOGY_FILE,
    FileResourceStore,
    ResourceLoader,
)

from conftest import BUNDLED_FRAMEWORKS, InMemoryResourceStore


class TestResourceLoader:
    def test_second_load_is_cached(self, resource_store, resource_loader):
        first = resource_loader.load("command_of_the_message")
        reads_after_first = len(resource_store.reads)
        second = resource_loader.load("command_of_the_message")

        assert second is first
        assert second == first
        assert len(resource_store.reads) == reads_after_first == 5

    def test_clear_forces_reload(self, resource_store, resource_loader):
        resource_loader.load("great_demo")
        resource_loader.clear()
        resource_loader.load("great_demo")
        assert len(resource_store.reads) == 10

    def test_missing_artifacts_are_absent(self, resource_loader):
        resources = resource_loader.load("demo2win")
        assert resources.methodology is None
        assert resources.scoring_examples is None
        assert resources.definition is not None
        assert resources.framework.name == "Demo2Win"
        assert not resources.has_guidance

    def test_full_resources(self, resource_loader):
        resources = resource_loader.load("command_of_the_message")
        assert resources.has_guidance
        assert resources.planning_checklist.startswith("# Follow-up planning checklist")
        assert len(resources.framework.components) == 5

    def test_nothing_stored_uses_fallback_definition(self):
        loader = ResourceLoader(InMemoryResourceStore())
        resources = loader.load("great_demo")
        assert resources.framework.is_fallback
        assert resources.framework.name == "Great Demo"
        assert resources.definition is None

    def test_malformed_definition_json(self):
        store = InMemoryResourceStore({("great_demo", DEFINITION_FILE): "{not json"})
        resources = ResourceLoader(store).load("great_demo")
        assert resources.definition is None
        assert resources.framework.is_fallback

    def test_definition_must_be_object(self):
        store = InMemoryResourceStore({("great_demo", DEFINITION_FILE): "[1, 2]"})
        assert ResourceLoader(store).load("great_demo").definition is None

    def test_unreadable_text_artifact(self):
        class FlakyStore(InMemoryResourceStore):
            def read_text(self, framework_id, filename):
                if filename == METHODOLOGY_FILE:
                    raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
                return super().read_text(framework_id, filename)

        store = FlakyStore({("great_demo", "call_examples.md"): "Example call"})
        resources = ResourceLoader(store).load("great_demo")
        assert resources.methodology is None
        assert resources.call_examples == "Example call"
        assert resources.has_guidance

    def test_store_errors_are_per_artifact(self):
        class BrokenBucketStore(InMemoryResourceStore):
            def read_text(self, framework_id, filename):
                if filename in (DEFINITION_FILE, METHODOLOGY_FILE):
                    raise RuntimeError("bucket unavailable")
                return super().read_text(framework_id, filename)

        store = BrokenBucketStore({("great_demo", "scoring_examples.md"): "Score 9: quantified pain"})
        resources = ResourceLoader(store).load("great_demo")

        assert resources.definition is None
        assert resources.framework.is_fallback
        assert resources.methodology is None
        assert resources.scoring_examples == "Score 9: quantified pain"
        assert ("great_demo", "call_examples.md") in store.reads


class TestFileResourceStore:
    @pytest.mark.parametrize("framework_id", VALID_FRAMEWORKS)
    def test_bundled_definitions_parse(self, framework_id):
        resources = ResourceLoader(FileResourceStore(BUNDLED_FRAMEWORKS)).load(framework_id)
        assert not resources.framework.is_fallback
        assert resources.framework.components
        for comp in resources.framework.components:
            assert comp.sub_components
            for sub in comp.sub_components:
                assert sub.scoring_criteria.excellent
                assert sub.scoring_criteria.poor

    def test_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            FileResourceStore(tmp_path).read_text("great_demo", METHODOLOGY_FILE)

    def test_reads_from_base_path(self, tmp_path):
        (tmp_path / "great_demo").mkdir()
        (tmp_path / "great_demo" / METHODOLOGY_FILE).write_text("# Situation first", encoding="utf-8")
        assert FileResourceStore(tmp_path).read_text("great_demo", METHODOLOGY_FILE) == "# Situation first"


class TestDefinitions:
    def test_valid_frameworks(self):
        assert is_valid_framework("demo2win")
        assert not is_valid_framework("spin_selling")

    def test_fallback_definition(self):
        definition = fallback_definition("miro_value_selling")
        assert definition.name == "Miro Value Selling"
        assert definition.description == "Framework definition for miro_value_selling (fallback)"
        assert definition.components == ()

    def test_parse_missing_name_falls_back(self):
        definition = parse_definition("great_demo", {"description": "no name"})
        assert definition.is_fallback

    def test_round_trip_keeps_camel_case(self):
        data = {
            "name": "Great Demo",
            "components": [
                {
                    "name": "Critical Business Issues",
                    "subComponents": [
                        {"name": "Risk Assessment", "scoringCriteria": {"excellent": "a", "poor": "d"}}
                    ],
                }
            ],
        }
        out = parse_definition("great_demo", data).to_dict()
        sub = out["components"][0]["subComponents"][0]
        assert sub["scoringCriteria"]["excellent"] == "a"
        assert sub["keywords"] == []
