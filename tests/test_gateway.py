import pytest

from features.maintenance import GatewayError
from features.maintenance import gateway as gateway_mod
from features.maintenance.flows import REPORT_ONLY_IF_DETECTED, judge_frame, resolve_judgement
from features.maintenance.gateway import OpenAIAnalysisGateway


def _stub_chat_json(monkeypatch, reply):
    calls = []

    def fake_chat_json(system, user, **kwargs):
        calls.append((system, user, kwargs))
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(gateway_mod, "chat_json", fake_chat_json)
    return calls


def test_analyze_frame_parses_judgement(monkeypatch):
    calls = _stub_chat_json(monkeypatch, {
        "hasIssue": True,
        "description": "Minor hydraulic seal leak detected",
        "partsRequired": ["O-ring"],
        "costSelf": 120,
        "costOutsourced": 900.5,
    })

    judgement = OpenAIAnalysisGateway(model="test-model").analyze_frame(b"\xff\xd8jpeg")

    assert judgement.has_issue is True
    assert judgement.description == "Minor hydraulic seal leak detected"
    assert judgement.parts_required == ("O-ring",)
    assert judgement.estimated_cost_outsourced == 900.5
    _, user, kwargs = calls[0]
    assert kwargs["model"] == "test-model"
    assert user[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


@pytest.mark.parametrize("reply", [
    {"hasIssue": True, "description": "   ", "partsRequired": [], "costSelf": 1, "costOutsourced": 1},
    {"hasIssue": True, "description": "Leak", "partsRequired": [], "costSelf": -5, "costOutsourced": 1},
    {"description": "Leak"},
])
def test_analyze_frame_rejects_malformed_reply(monkeypatch, reply):
    _stub_chat_json(monkeypatch, reply)
    with pytest.raises(GatewayError):
        OpenAIAnalysisGateway().analyze_frame(b"img")


def test_analyze_frame_wraps_parse_failure(monkeypatch):
    _stub_chat_json(monkeypatch, ValueError("LLM returned invalid JSON"))
    with pytest.raises(GatewayError):
        OpenAIAnalysisGateway().analyze_frame(b"img")


def test_analyze_frame_rejects_empty_image():
    with pytest.raises(GatewayError):
        OpenAIAnalysisGateway().analyze_frame(b"")


def test_generate_repair_guide(monkeypatch):
    calls = _stub_chat_json(monkeypatch, {"steps": ["Isolate power", "Replace belt"], "tools": ["Wrench"]})

    guide = OpenAIAnalysisGateway().generate_repair_guide("Low belt tension", "Titan X-500")

    assert guide.steps == ("Isolate power", "Replace belt")
    assert guide.tools == ("Wrench",)
    assert "Titan X-500" in calls[0][1]
    assert "Low belt tension" in calls[0][1]


def test_generate_repair_guide_requires_steps(monkeypatch):
    _stub_chat_json(monkeypatch, {"steps": [], "tools": []})
    with pytest.raises(GatewayError):
        OpenAIAnalysisGateway().generate_repair_guide("Leak", "Titan X-500")


@pytest.mark.parametrize("reply", [
    {"hasIssue": False, "description": ""},
    {"hasIssue": False, "description": "No visible defects"},
    {"hasIssue": False},
])
def test_analyze_frame_accepts_clean_reply(monkeypatch, reply):
    _stub_chat_json(monkeypatch, reply)

    judgement = OpenAIAnalysisGateway().analyze_frame(b"img")

    assert judgement.has_issue is False
    assert judgement.description
    assert judgement.estimated_cost_self == 0
    assert judgement.estimated_cost_outsourced == 0


def test_clean_reply_records_nothing_when_report_only(monkeypatch):
    _stub_chat_json(monkeypatch, {"hasIssue": False, "description": ""})
    judgement = judge_frame(OpenAIAnalysisGateway(), b"img")
    assert resolve_judgement(judgement, REPORT_ONLY_IF_DETECTED) is None


def test_issue_reply_without_costs_defaults_to_zero(monkeypatch):
    _stub_chat_json(monkeypatch, {"hasIssue": True, "description": "Loose wiring"})
    judgement = OpenAIAnalysisGateway().analyze_frame(b"img")
    assert judgement.description == "Loose wiring"
    assert (judgement.estimated_cost_self, judgement.estimated_cost_outsourced) == (0, 0)
