import pytest

from src.sem_copilot.fit_indices import classify_fit_index, evaluate_fit_indices, summarize_fit


@pytest.mark.parametrize(
    "name, value, status",
    [
        ("CFI", 0.96, "good"),
        ("CFI", 0.93, "acceptable"),
        ("TLI", 0.85, "poor"),
        ("RMSEA", 0.05, "good"),
        ("RMSEA", 0.06, "acceptable"),
        ("RMSEA", 0.08, "poor"),
        ("SRMR", 0.079, "acceptable"),
        ("chisq/df", 2.5, "good"),
        ("CMIN/DF", 5.0, "acceptable"),
        ("CMIN/DF", 5.1, "poor"),
    ],
)
def test_classify_fit_index_thresholds(name, value, status):
    assert classify_fit_index(name, value).status == status


def test_unknown_index_raises():
    with pytest.raises(ValueError):
        classify_fit_index("AIC", 120.0)


def test_evaluate_skips_unknown_and_missing_values():
    results = evaluate_fit_indices({"CFI": "0.95", "RMSEA": "", "AIC": 100, "TLI": "n/a", "SRMR": 0.04})
    assert [result.name for result in results] == ["CFI", "SRMR"]
    assert results[0].to_dict()["status"] == "good"


def test_summarize_fit_verdicts():
    assert summarize_fit([])["verdict"] == "none"
    assert summarize_fit(evaluate_fit_indices({"CFI": 0.97, "RMSEA": 0.04}))["verdict"] == "good"
    assert summarize_fit(evaluate_fit_indices({"CFI": 0.92, "RMSEA": 0.07}))["verdict"] == "acceptable"

    poor = summarize_fit(evaluate_fit_indices({"CFI": 0.97, "RMSEA": 0.10}))
    assert poor["verdict"] == "poor"
    assert "RMSEA" in poor["message"]
    assert poor["counts"] == {"good": 1, "acceptable": 0, "poor": 1}
