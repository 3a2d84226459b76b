from leadscout.models import Lead, coerce_bool, coerce_float, normalize_sentiment


def test_normalize_sentiment() -> None:
    assert normalize_sentiment("Positive ") == "positive"
    assert normalize_sentiment("NEGATIVE") == "negative"
    assert normalize_sentiment("mixed") == "neutral"
    assert normalize_sentiment(None) == "neutral"
    assert normalize_sentiment(3) == "neutral"


def test_from_dict_accepts_camel_case() -> None:
    lead = Lead.from_dict(
        {
            "id": "a1",
            "name": "Joe's Pizza",
            "rating": "4.2",
            "marketGaps": ["No booking"],
            "pitchAngle": "Go mobile.",
            "hasChatbot": True,
            "isSaved": True,
            "sentiment": "bad",
        }
    )

    assert lead.rating == 4.2
    assert lead.market_gaps == ["No booking"]
    assert lead.pitch_angle == "Go mobile."
    assert lead.has_chatbot is True
    assert lead.has_online_booking is False
    assert lead.is_saved is True
    assert lead.sentiment == "neutral"


def test_to_dict_uses_wire_names() -> None:
    data = Lead(id="a1", name="Joe's Pizza", market_gaps=["x"], has_online_booking=True).to_dict()

    assert data["marketGaps"] == ["x"]
    assert data["hasOnlineBooking"] is True
    assert data["isSaved"] is False
    assert Lead.from_dict(data) == Lead(id="a1", name="Joe's Pizza", market_gaps=["x"], has_online_booking=True)


def test_coercions_tolerate_text_values() -> None:
    assert coerce_float("4.5") == 4.5
    assert coerce_float("4.5 stars", 0.0) == 0.0
    assert coerce_float(None) is None
    assert coerce_bool("false") is False
    assert coerce_bool("Yes") is True
    assert coerce_bool(1) is True
    assert coerce_bool(None) is False
