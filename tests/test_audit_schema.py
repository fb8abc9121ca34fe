"""Unit tests for the audit wire format."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from dmn_audit.audit import AuditRecorder
from dmn_audit.schemas.audit import DecisionExecutionAudit, HitPolicy

T0 = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

WIRE_FIELDS = {
    "decisionKey",
    "decisionName",
    "hitPolicy",
    "dmnDeploymentId",
    "startTime",
    "endTime",
    "inputVariables",
    "inputVariableTypes",
    "ruleExecutions",
    "failed",
    "exceptionMessage",
    "strictMode",
}


def _stopped_audit() -> DecisionExecutionAudit:
    recorder = AuditRecorder.begin(
        "loanApproval",
        "Loan approval",
        HitPolicy.RULE_ORDER,
        False,
        {"amount": 100.5, "when": T0, "vip": True},
        clock=lambda: T0,
    )
    recorder.open_rule(1)
    recorder.record_condition(1, 1, "c1", True)
    recorder.mark_rule_valid(1)
    recorder.close_rule(1)
    recorder.record_conclusion(1, 1, "o1", "APPROVE")
    recorder.attach_deployment_id("dep-7")
    return recorder.stop_audit()


def test_wire_field_names():
    """Serialized audit uses exactly the contract field names."""
    data = _stopped_audit().to_json_dict()
    assert set(data) == WIRE_FIELDS
    assert data["hitPolicy"] == "RULE ORDER"
    assert data["dmnDeploymentId"] == "dep-7"
    assert data["inputVariableTypes"] == {"amount": "number", "when": "date", "vip": "boolean"}
    assert data["inputVariables"]["when"] == "2026-10-19T09:00:00Z"


def test_nested_wire_field_names():
    data = _stopped_audit().to_json_dict()
    rule = data["ruleExecutions"]["1"]
    assert set(rule) == {
        "ruleNumber",
        "startTime",
        "endTime",
        "valid",
        "conditionResults",
        "conclusionResults",
    }
    assert rule["conclusionResults"]["1"] == {
        "expressionId": "o1",
        "result": "APPROVE",
        "exceptionMessage": None,
    }


def test_from_json_dict_restores_structure():
    audit = _stopped_audit()
    restored = DecisionExecutionAudit.from_json_dict(audit.to_json_dict())
    assert restored.rule_executions[1].conclusion_results[1].result == "APPROVE"
    assert restored.start_time == audit.start_time
    assert restored.end_time == audit.end_time
    assert restored.stopped


def test_mismatched_rule_key_rejected():
    data = _stopped_audit().to_json_dict()
    data["ruleExecutions"]["2"] = data["ruleExecutions"].pop("1")
    with pytest.raises(ValidationError, match="does not match ruleNumber"):
        DecisionExecutionAudit.from_json_dict(data)


def test_type_keys_must_match_input_keys():
    data = _stopped_audit().to_json_dict()
    data["inputVariableTypes"]["extra"] = "string"
    with pytest.raises(ValidationError, match="different keys"):
        DecisionExecutionAudit.from_json_dict(data)


def test_end_before_start_rejected():
    data = _stopped_audit().to_json_dict()
    data["endTime"] = "2020-01-01T00:00:00Z"
    with pytest.raises(ValidationError, match="endTime precedes startTime"):
        DecisionExecutionAudit.from_json_dict(data)


class Money:
    """Domain value the JSON encoder knows nothing about."""

    def __init__(self, amount: str, currency: str):
        self.amount = amount
        self.currency = currency

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


def test_unknown_result_type_serializes_as_text():
    recorder = AuditRecorder.begin("pricing", "Pricing", "FIRST", False, {}, clock=lambda: T0)
    recorder.open_rule(1)
    recorder.mark_rule_valid(1)
    recorder.record_conclusion(1, 1, "o1", Money("12.50", "EUR"))
    recorder.close_rule(1)
    audit = recorder.stop_audit()

    data = audit.to_json_dict()
    assert data["ruleExecutions"]["1"]["conclusionResults"]["1"]["result"] == "12.50 EUR"
    # python-mode access keeps the original object
    assert isinstance(audit.rule_executions[1].conclusion_results[1].result, Money)


def test_json_compatible_results_are_unchanged():
    data = _stopped_audit().to_json_dict()
    assert data["ruleExecutions"]["1"]["conditionResults"]["1"]["result"] is True
