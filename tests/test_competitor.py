import pytest

from factories import make_lead
from leadscout.competitor import analyze_competitor
from leadscout.errors import ScoutingError


class FakeLLM:
    def __init__(self, payload):
        self.payload = payload
        self.prompts = []

    def complete_json(self, model, prompt, system=None):
        self.prompts.append(prompt)
        return self.payload


def test_analyze_competitor_maps_payload() -> None:
    llm = FakeLLM(
        {
            "competitorUrl": "https://rival.example",
            "issues": ["No SSL", "Broken mobile menu"],
            "comparisonSummary": "Rival has more reviews.",
            "advantageLead": "Faster online ordering.",
        }
    )

    report = analyze_competitor(llm, "gpt-test", make_lead("a1", website=""), " https://rival.example ")

    assert report.issues == ["No SSL", "Broken mobile menu"]
    assert report.advantage_lead == "Faster online ordering."
    assert "(No website)" in llm.prompts[0]


def test_analyze_competitor_empty_response() -> None:
    with pytest.raises(ScoutingError):
        analyze_competitor(FakeLLM({}), "gpt-test", make_lead("a1"), "https://rival.example")


def test_analyze_competitor_requires_url() -> None:
    with pytest.raises(ValueError):
        analyze_competitor(FakeLLM({}), "gpt-test", make_lead("a1"), "  ")
