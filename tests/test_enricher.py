import requests

from factories import make_lead
from leadscout.enricher import WebsiteAuditor
from leadscout.http import RequestManager


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError("bad status")


def test_auditor_detects_chatbot_and_booking(monkeypatch) -> None:
    seen_urls = []

    def fake_get(url, timeout=10, **kwargs):
        seen_urls.append(url)
        return FakeResponse('<script src="https://widget.intercom.io/x.js"></script><a href="https://calendly.com/joe">Book</a>')

    monkeypatch.setattr(requests, "get", fake_get)

    lead = make_lead(website="joespizza.example")
    WebsiteAuditor(RequestManager(timeout_seconds=5)).audit(lead)

    assert seen_urls == ["https://joespizza.example"]
    assert lead.has_chatbot is True
    assert lead.has_online_booking is True


def test_auditor_never_downgrades_signals(monkeypatch) -> None:
    monkeypatch.setattr(requests, "get", lambda url, timeout=10, **kwargs: FakeResponse("<html>plain page</html>"))

    lead = make_lead(website="https://joespizza.example", has_chatbot=True)
    WebsiteAuditor(RequestManager()).audit(lead)

    assert lead.has_chatbot is True
    assert lead.has_online_booking is False


def test_auditor_ignores_fetch_failures(monkeypatch) -> None:
    monkeypatch.setattr(requests, "get", lambda url, timeout=10, **kwargs: FakeResponse("", 404))

    lead = make_lead(website="joespizza.example")
    WebsiteAuditor(RequestManager(max_retries=1)).audit(lead)

    assert lead.has_chatbot is False
    assert lead.has_online_booking is False


def test_auditor_skips_leads_without_website(monkeypatch) -> None:
    def fail_get(url, timeout=10, **kwargs):
        raise AssertionError("should not fetch")

    monkeypatch.setattr(requests, "get", fail_get)

    lead = make_lead(website="")
    assert WebsiteAuditor(RequestManager()).audit(lead) is lead


def test_request_manager_retries_retryable_status(monkeypatch) -> None:
    responses = [FakeResponse("", 503), FakeResponse("ok", 200)]
    monkeypatch.setattr(requests, "get", lambda url, timeout=10, **kwargs: responses.pop(0))
    monkeypatch.setattr("leadscout.http.time.sleep", lambda seconds: None)

    assert RequestManager(max_retries=2).get_text("https://example.com") == "ok"
