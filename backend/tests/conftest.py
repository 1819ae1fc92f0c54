import copy
import json
import re
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = REPO_ROOT / "backend"
FIXTURES_PATH = REPO_ROOT / "data" / "fixtures" / "transactions.json"

if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from fraud_detector.llm.provider import LLMProvider, LLMResponse, ToolInvocation  # noqa: E402

_SCORE = re.compile(r"Third-party Fraud Score: ([0-9.]+)")
_FIELD = re.compile(r"- (Transaction ID|Customer ID|Name): (.+)")
_ALERT = re.compile(r"ALERT ID: (.+)")
_AMOUNT = re.compile(r"- Amount: \w+ ([0-9.]+)")


class StubFraudModel(LLMProvider):
    """Stands in for the hosted model: decides on the third-party fraud score
    and calls the escalation tool when it escalates."""

    def __init__(self) -> None:
        self.calls = []

    def generate(self, messages, model, tools=()):
        self.calls.append({"messages": messages, "model": model, "tools": list(tools)})
        prompt = messages[-1].content
        score = float(_SCORE.search(prompt).group(1))

        if score < 0.3:
            decision, risk = "ALLOW", score
        elif score > 0.75:
            decision, risk = "BLOCK", score
        else:
            decision, risk = "ESCALATE", score

        invocations = []
        if decision == "ESCALATE":
            fields = dict(_FIELD.findall(prompt))
            arguments = {
                "alert_id": _ALERT.search(prompt).group(1),
                "tx_id": fields["Transaction ID"],
                "reason": "Mixed risk signals",
                "risk_factors": [f"Fraud score {score}"],
                "customer_id": fields["Customer ID"],
                "amount": float(_AMOUNT.search(prompt).group(1)),
                "merchant_name": fields["Name"],
            }
            tool = next(t for t in tools if t.name == "escalate_to_human")
            invocations.append(ToolInvocation(tool.name, arguments, tool.invoke(arguments)))

        reply = {
            "decision": decision,
            "confidence": 0.9,
            "reasoning": f"Fraud score {score}",
            "risk_score": risk,
            "key_factors": [f"fraud_score={score}"],
            "recommendation": "n/a",
        }
        text = f"Here is my assessment:\n```json\n{json.dumps(reply)}\n```"
        return LLMResponse(text=text, tool_invocations=invocations)


class FailingModel(LLMProvider):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    def generate(self, messages, model, tools=()):
        self.calls += 1
        raise self.exc


@pytest.fixture(scope="session")
def fixture_cases():
    return json.loads(FIXTURES_PATH.read_text(encoding="utf-8"))


@pytest.fixture()
def alert_payload(fixture_cases):
    """A deep copy of the ALLOW scenario, safe to mutate."""
    return copy.deepcopy(fixture_cases[0]["data"])


@pytest.fixture()
def stub_model():
    return StubFraudModel()


@pytest.fixture()
def failing_model():
    return FailingModel(RuntimeError("model quota exceeded"))
