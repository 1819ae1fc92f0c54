import pytest

from fraud_detector.services.decision_parser import (
    HEURISTIC_FACTOR,
    PARSE_FAILURE_FACTOR,
    parse_decision,
)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "I could not reach a conclusion.",
        "{not json at all}",
        '{"decision": "ALLOW", "confidence": 0.9, "reasoning": "ok", "risk_score": 0.1}',
        'Result: {"decision": "BLOCK"',
        "}{",
    ],
)
def test_parser_always_returns_a_decision(text):
    decision = parse_decision(text)
    assert decision.decision in {"ALLOW", "BLOCK", "ESCALATE"}


def test_json_embedded_in_prose_is_used_verbatim():
    text = (
        "After reviewing the signals my answer is\n"
        '{"decision": "ALLOW", "confidence": 0.9, "reasoning": "Clean profile", '
        '"risk_score": 0.12, "key_factors": ["verified KYC", "old account"], '
        '"recommendation": "Process normally"}\n'
        "Let me know if you need more."
    )
    decision = parse_decision(text)
    assert decision.decision == "ALLOW"
    assert decision.confidence == 0.9
    assert decision.risk_score == 0.12
    assert decision.key_factors == ["verified KYC", "old account"]
    assert decision.recommendation == "Process normally"


def test_malformed_json_escalates():
    text = 'Decision: {"decision": "BLOCK", "confidence": 0.95,, }'
    decision = parse_decision(text)
    assert decision.decision == "ESCALATE"
    assert decision.confidence == 0.5
    assert decision.risk_score == 0.6
    assert PARSE_FAILURE_FACTOR in decision.key_factors
    assert decision.reasoning == text


def test_json_with_unknown_decision_escalates():
    decision = parse_decision('{"decision": "MAYBE", "confidence": 0.9, "reasoning": "?", "risk_score": 0.5}')
    assert decision.decision == "ESCALATE"
    assert PARSE_FAILURE_FACTOR in decision.key_factors


def test_keyword_allow():
    text = "My decision is to allow this payment."
    decision = parse_decision(text)
    assert (decision.decision, decision.confidence, decision.risk_score) == ("ALLOW", 0.7, 0.3)
    assert decision.reasoning == text
    assert decision.key_factors == [HEURISTIC_FACTOR]


def test_keyword_block():
    decision = parse_decision("DECISION: BLOCK - card testing pattern")
    assert (decision.decision, decision.confidence, decision.risk_score) == ("BLOCK", 0.8, 0.8)
    assert decision.key_factors == [HEURISTIC_FACTOR]


def test_allow_keyword_takes_precedence_over_block():
    decision = parse_decision("Decision: block, do not allow")
    assert decision.decision == "ALLOW"


def test_no_keywords_escalates():
    decision = parse_decision("This looks unusual but I am not sure.")
    assert (decision.decision, decision.confidence, decision.risk_score) == ("ESCALATE", 0.5, 0.6)
    assert decision.key_factors == [HEURISTIC_FACTOR]


def test_empty_reply_escalates():
    decision = parse_decision("")
    assert decision.decision == "ESCALATE"
    assert decision.reasoning == ""


def test_greedy_match_spans_multiple_objects():
    # First "{" to last "}" covers both fragments, which is not valid JSON.
    text = '{"decision": "ALLOW"} and also {"decision": "BLOCK"}'
    decision = parse_decision(text)
    assert decision.decision == "ESCALATE"
    assert PARSE_FAILURE_FACTOR in decision.key_factors


def test_json_without_reasoning_or_risk_score_is_used():
    decision = parse_decision('Answer: {"decision": "BLOCK", "confidence": 0.95}')
    assert decision.decision == "BLOCK"
    assert decision.confidence == 0.95
    assert decision.risk_score == 0.95
    assert decision.reasoning == ""
    assert PARSE_FAILURE_FACTOR not in decision.key_factors


def test_lowercase_decision_label_is_accepted():
    decision = parse_decision('{"decision": "allow", "confidence": 0.9, "reasoning": "ok", "risk_score": 0.1}')
    assert decision.decision == "ALLOW"
    assert decision.risk_score == 0.1


def test_out_of_range_values_escalate():
    decision = parse_decision('{"decision": "BLOCK", "confidence": 1.7, "reasoning": "sure", "risk_score": 0.9}')
    assert decision.decision == "ESCALATE"
    assert PARSE_FAILURE_FACTOR in decision.key_factors
