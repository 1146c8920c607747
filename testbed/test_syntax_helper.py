import pytest

from src.sem_copilot.syntax_helper import (
    build_lavaan_syntax,
    get_jamovi_steps,
    get_syntax_template,
    list_syntax_templates,
    parse_model_outline,
)


def test_templates_are_listed_and_retrievable():
    ids = [template["id"] for template in list_syntax_templates()]
    assert ids == ["cfa", "full_sem", "mediation", "multigroup"]
    assert "Success ~ Leadership + Quality" in get_syntax_template("full_sem")
    assert get_jamovi_steps("mediation")
    assert get_jamovi_steps("unknown") == []
    with pytest.raises(KeyError):
        get_syntax_template("unknown")


def test_outline_builds_lavaan_sections():
    outline = parse_model_outline(
        "Leadership: L1, L2\n"
        "Quality =~ Q1 + Q2\n"
        "Success ~ Leadership\n"
        "Quality -> Success\n"
        "Leadership ~~ Quality\n"
        "# comment only\n"
    )
    assert build_lavaan_syntax(outline) == (
        "# Measurement model\n"
        "Leadership =~ L1 + L2\n"
        "Quality =~ Q1 + Q2\n"
        "\n"
        "# Structural model\n"
        "Success ~ Leadership + Quality\n"
        "\n"
        "# Covariances\n"
        "Leadership ~~ Quality\n"
    )


def test_outline_skips_defined_parameters_and_noise():
    outline = parse_model_outline("indirect := a*b\nthis is not syntax")
    assert outline.skipped_lines == ["indirect := a*b", "this is not syntax"]
    assert build_lavaan_syntax(outline) == ""


def test_multiword_names_become_single_tokens():
    outline = parse_model_outline("Job Satisfaction: item one, item two")
    assert outline.factors == [("Job_Satisfaction", ["item_one", "item_two"])]
