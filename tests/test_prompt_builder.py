"""Tests for prompt construction."""

import pytest

from call_analyzer.analysis.definitions import fallback_definition
from call_analyzer.analysis.prompt_builder import (
    NO_TRANSCRIPT_EVIDENCE,
    build_analysis_prompt,
    build_call_info,
    build_components_text,
    build_framework_context,
)
from call_analyzer.analysis.transcript import summarize_transcript
from call_analyzer.analysis.types import CallContext, FrameworkResources, PromptMode
from call_analyzer.core.config import settings

from conftest import _make_details, _make_transcript


def _make_context(with_transcript=True, **kwargs):
    entries = (
        _make_transcript(
            ("Sarah Chen", "What does re-planning cost you?", 270),
            ("John Park", "About a week, every time.", 281),
        )
        if with_transcript
        else []
    )
    return CallContext(
        details=_make_details("c1", title="Acme discovery"),
        transcript=entries,
        transcript_summary=summarize_transcript(entries) if entries else None,
        **kwargs,
    )


class TestModeSelection:
    def test_enhanced_when_guidance_loaded(self, resource_loader):
        resources = resource_loader.load("command_of_the_message")
        prompt = build_analysis_prompt(resources.framework, resources, _make_context())
        assert prompt.mode == PromptMode.ENHANCED
        assert "## Framework Methodology" in prompt.user_prompt
        assert "## Follow-up Planning Checklist" in prompt.user_prompt
        assert '"followUpCallPlanning"' in prompt.user_prompt
        assert "comprehensive methodology guides" in prompt.system_prompt

    def test_basic_without_guidance(self, resource_loader):
        resources = resource_loader.load("demo2win")
        prompt = build_analysis_prompt(resources.framework, resources, _make_context())
        assert prompt.mode == PromptMode.BASIC
        assert "COMPONENTS TO ANALYZE:" in prompt.user_prompt
        assert "- Opening Hook:" in prompt.user_prompt
        assert "comprehensive methodology guides" not in prompt.system_prompt

    def test_basic_without_resources(self):
        framework = fallback_definition("miro_value_selling")
        prompt = build_analysis_prompt(framework, None, _make_context())
        assert prompt.mode == PromptMode.BASIC
        assert "no components defined" in prompt.user_prompt


class TestTranscriptSection:
    def test_transcript_rendered_with_timestamps(self, resource_loader):
        resources = resource_loader.load("great_demo")
        prompt = build_analysis_prompt(resources.framework, resources, _make_context())
        assert '[4:41] John: "About a week, every time."' in prompt.user_prompt
        assert "TRANSCRIPT SUMMARY:" in prompt.user_prompt
        assert "- Total Speakers: 2" in prompt.user_prompt
        assert "CITATION FORMAT" in prompt.user_prompt

    def test_no_transcript_instructions(self, resource_loader):
        resources = resource_loader.load("great_demo")
        prompt = build_analysis_prompt(resources.framework, resources, _make_context(with_transcript=False))
        assert "TRANSCRIPT: No transcript available for this call." in prompt.user_prompt
        assert f'Use "{NO_TRANSCRIPT_EVIDENCE}" as evidence' in prompt.user_prompt
        assert "TRANSCRIPT SUMMARY:" not in prompt.user_prompt


class TestCallInfo:
    def test_participants_included_by_default(self):
        info = build_call_info(_make_context())
        assert "- Title: Acme discovery" in info
        assert "- Participants: Sarah Chen, John Park" in info

    def test_participants_omitted(self):
        assert "Participants" not in build_call_info(_make_context(), include_participant_roles=False)

    def test_call_sequence(self):
        context = _make_context(sequence_position=2, sequence_total=5)
        assert "- Call Sequence: Call 2 of 5" in build_call_info(context, include_call_sequence=True)
        assert "Call Sequence" not in build_call_info(context)


class TestFrameworkContext:
    def test_sections_truncated_to_budget(self, resource_loader):
        framework = resource_loader.load("command_of_the_message").framework
        resources = FrameworkResources(
            framework_id="command_of_the_message",
            framework=framework,
            methodology="M" * (settings.methodology_char_limit + 500),
            scoring_examples="S" * (settings.scoring_examples_char_limit + 500),
        )
        text = build_framework_context(framework, resources)
        assert "M" * settings.methodology_char_limit in text
        assert "M" * (settings.methodology_char_limit + 1) not in text
        assert "S" * (settings.scoring_examples_char_limit + 1) not in text
        assert "## Call Analysis Examples" not in text

    def test_structure_included(self, resource_loader):
        framework = resource_loader.load("command_of_the_message").framework
        text = build_framework_context(framework, resource_loader.load("command_of_the_message"))
        assert '"subComponents"' in text
        assert "Current State Clarity" in text

    @pytest.mark.parametrize("framework_id", ["great_demo", "demo2win", "miro_value_selling"])
    def test_components_text_lists_every_sub_component(self, resource_loader, framework_id):
        framework = resource_loader.load(framework_id).framework
        text = build_components_text(framework)
        for comp in framework.components:
            assert comp.name in text
            for sub in comp.sub_components:
                assert f"- {sub.name}: " in text
