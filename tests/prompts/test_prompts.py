# tests/prompts/test_prompts.py

import pytest
from pathlib import Path

from safetyflows.errors import TemplateError
from safetyflows.models.prompts import PromptManager, PromptConfig, PromptText, stringify


@pytest.fixture
def temp_prompts_dir(tmp_path):
    """Create a temporary prompts directory with test data"""
    prompts_path = tmp_path / "prompts"

    talk_v1 = prompts_path / "toolbox" / "talk" / "v1"
    talk_v1.mkdir(parents=True)
    (talk_v1 / "config.yaml").write_text("""
description: Toolbox talk
stop_sequences:
  - "END"
""")
    (talk_v1 / "system.txt").write_text("You write toolbox talks. Use {{ literal }} braces as-is.\n")
    (talk_v1 / "user.j2").write_text("Generate a toolbox talk about the following topic: {{ topic }}")

    # no config, no system instruction
    kpi_v1 = prompts_path / "kpi" / "summarize" / "v1"
    kpi_v1.mkdir(parents=True)
    (kpi_v1 / "user.j2").write_text("Department: {{ department_name }}\nKPI Data: {{ kpi_data }}")

    jsa_v1 = prompts_path / "jsa" / "review" / "v1"
    jsa_v1.mkdir(parents=True)
    (jsa_v1 / "config.yaml").write_text("")
    (jsa_v1 / "user.j2").write_text(
        "Title: {{ title }}\n"
        "{% for step in steps %}\n"
        "- {{ step.step_description }} ({{ step.hazards }})\n"
        "{% endfor %}"
    )

    broken_v1 = prompts_path / "broken" / "syntax" / "v1"
    broken_v1.mkdir(parents=True)
    (broken_v1 / "user.j2").write_text("Topic: {{ topic ")

    return prompts_path


@pytest.fixture
def manager(temp_prompts_dir):
    return PromptManager(temp_prompts_dir)


# ============ Prompt Loading Tests ============

class TestPromptLoading:
    def test_load_valid_prompt_with_config(self, manager):
        config = manager.load_prompt("toolbox/talk@v1")

        assert config.name == "toolbox/talk"
        assert config.version == "v1"
        assert config.stop_sequences == ["END"]
        assert config.description == "Toolbox talk"
        assert config.system == "You write toolbox talks. Use {{ literal }} braces as-is."
        assert "{{ topic }}" in config.user_template

    def test_load_prompt_without_config_or_system(self, manager):
        config = manager.load_prompt("kpi/summarize@v1")

        assert config.stop_sequences is None
        assert config.system is None

    def test_load_prompt_with_empty_config(self, manager):
        config = manager.load_prompt("jsa/review@v1")
        assert config.stop_sequences is None

    def test_missing_prompts_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Prompts dir not found"):
            PromptManager(tmp_path / "nowhere")

    def test_load_missing_prompt(self, manager):
        with pytest.raises(FileNotFoundError, match="Prompt not found"):
            manager.load_prompt("toolbox/talk@v99")

    def test_load_missing_user_template(self, temp_prompts_dir, manager):
        broken = temp_prompts_dir / "broken2" / "test" / "v1"
        broken.mkdir(parents=True)
        (broken / "system.txt").write_text("System prompt")

        with pytest.raises(FileNotFoundError, match="Template file not found"):
            manager.load_prompt("broken2/test@v1")

    def test_invalid_reference_format(self, manager):
        with pytest.raises(ValueError, match="Invalid prompt reference"):
            manager.load_prompt("toolbox/talk")

    def test_caching(self, manager):
        config1 = manager.load_prompt("toolbox/talk@v1")
        config2 = manager.load_prompt("toolbox/talk@v1")
        assert config1 is config2

    def test_prompt_config_ref_property(self, manager):
        assert manager.load_prompt("toolbox/talk@v1").ref == "toolbox/talk@v1"

    def test_prompt_config_is_immutable(self, manager):
        config = manager.load_prompt("toolbox/talk@v1")
        with pytest.raises(Exception):
            config.system = "changed"


# ============ Placeholder Checks ============

class TestPlaceholderChecks:
    def test_placeholders(self, manager):
        assert manager.placeholders("kpi/summarize@v1") == {"department_name", "kpi_data"}

    def test_loop_variables_are_not_placeholders(self, manager):
        assert manager.placeholders("jsa/review@v1") == {"title", "steps"}

    def test_check_passes_when_fields_cover_placeholders(self, manager):
        manager.check("kpi/summarize@v1", ["department_name", "kpi_data", "unused_field"])

    def test_check_reports_unresolved_placeholders(self, manager):
        with pytest.raises(TemplateError, match="undefined field\\(s\\): kpi_data"):
            manager.check("kpi/summarize@v1", ["department_name"])

    def test_check_reports_syntax_errors(self, manager):
        with pytest.raises(TemplateError, match="does not compile"):
            manager.check("broken/syntax@v1", ["topic"])


# ============ Prompt Rendering Tests ============

class TestPromptRendering:
    def test_render_with_system_instruction(self, manager):
        prompt = manager.render("toolbox/talk@v1", {"topic": "Ladder Safety"})

        assert isinstance(prompt, PromptText)
        assert prompt.user == "Generate a toolbox talk about the following topic: Ladder Safety"
        # system text is never templated
        assert "{{ literal }}" in prompt.system
        assert prompt.stop_sequences == ["END"]

        messages = prompt.messages()
        assert [m["role"] for m in messages] == ["system", "user"]

    def test_render_without_system_instruction(self, manager):
        prompt = manager.render("kpi/summarize@v1", {"department_name": "Warehouse", "kpi_data": '{"incidents": 2}'})

        assert prompt.system is None
        assert prompt.messages() == [{"role": "user", "content": prompt.user}]
        assert 'KPI Data: {"incidents": 2}' in prompt.user

    def test_render_loop(self, manager):
        prompt = manager.render("jsa/review@v1", {
            "title": "Pallet move",
            "steps": [
                {"step_description": "Lift pallet", "hazards": "Crush"},
                {"step_description": "Move pallet", "hazards": "Collision"},
            ],
        })

        assert "- Lift pallet (Crush)" in prompt.user
        assert "- Move pallet (Collision)" in prompt.user

    def test_render_missing_required_variable(self, manager):
        with pytest.raises(TemplateError, match="Missing required variable"):
            manager.render("kpi/summarize@v1", {"department_name": "Warehouse"})

    def test_render_is_deterministic(self, manager):
        variables = {"department_name": "Warehouse", "kpi_data": {"b": 2, "a": 1}}

        first = manager.render("kpi/summarize@v1", variables)
        second = manager.render("kpi/summarize@v1", dict(variables))

        assert first == second
        assert 'KPI Data: {"a": 1, "b": 2}' in first.user

    def test_render_config_uses_the_given_prompt(self, temp_prompts_dir, manager):
        config = manager.load_prompt("toolbox/talk@v1")
        (temp_prompts_dir / "toolbox" / "talk" / "v1" / "user.j2").write_text("Changed: {{ audience }}")
        manager.clear_cache()

        prompt = manager.render_config(config, {"topic": "Ladder Safety"})

        assert prompt.user == "Generate a toolbox talk about the following topic: Ladder Safety"
        assert prompt.stop_sequences == ["END"]

    def test_clear_cache(self, manager):
        config1 = manager.load_prompt("toolbox/talk@v1")
        manager.clear_cache()
        assert manager.load_prompt("toolbox/talk@v1") is not config1


class TestStringify:
    @pytest.mark.parametrize("value, expected", [
        ("text", "text"),
        (None, ""),
        (True, "true"),
        (False, "false"),
        (3, "3"),
        (2.5, "2.5"),
        ({"b": 1, "a": [1, 2]}, '{"a": [1, 2], "b": 1}'),
        (["x", 1], '["x", 1]'),
    ])
    def test_stringify(self, value, expected):
        assert stringify(value) == expected
