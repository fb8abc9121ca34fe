#!/usr/bin/env python3
"""
Generate examples/sample_audits.json by replaying recorded decision table
traces through the audit recorder (no DB/API needed).
Usage: python scripts/generate_sample_audits.py
"""

import json
import sys
from datetime import date
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dmn_audit.audit import AuditRecorder
from dmn_audit.schemas.audit import HitPolicy

# Cell outcomes per rule as an evaluator reported them:
# (rule_number, [(input_no, entry_id, result, error)], [(output_no, entry_id, value)])
TRACES = [
    {
        "decision_key": "loanApproval",
        "decision_name": "Loan approval",
        "hit_policy": HitPolicy.UNIQUE,
        "strict_mode": True,
        "inputs": {"amount": 100, "customer": "ACME", "applied_on": date(2026, 3, 1)},
        "rules": [
            (1, [(1, "inputEntry_1_1", True, None), (2, "inputEntry_1_2", True, None)],
             [(1, "outputEntry_1_1", "APPROVE")]),
            (2, [(1, "inputEntry_2_1", False, None)], []),
        ],
        "failure": None,
    },
    {
        "decision_key": "riskClass",
        "decision_name": "Risk class",
        "hit_policy": HitPolicy.FIRST,
        "strict_mode": True,
        "inputs": {"score": 12.5, "vip": False},
        "rules": [
            (1, [(1, "inputEntry_1_1", False, "division by zero")], []),
        ],
        "failure": "no matching rule in strict mode",
    },
]


def replay(trace: dict) -> dict:
    recorder = AuditRecorder.begin(
        trace["decision_key"],
        trace["decision_name"],
        trace["hit_policy"],
        trace["strict_mode"],
        trace["inputs"],
    )
    for rule_number, conditions, conclusions in trace["rules"]:
        recorder.open_rule(rule_number)
        for input_no, entry_id, result, error in conditions:
            recorder.record_condition(rule_number, input_no, entry_id, result, error)
        if all(result for _, _, result, _ in conditions):
            recorder.mark_rule_valid(rule_number)
        recorder.close_rule(rule_number)
        for output_no, entry_id, value in conclusions:
            recorder.record_conclusion(rule_number, output_no, entry_id, value)
    if trace["failure"]:
        recorder.mark_failed(trace["failure"])
    recorder.stop_audit()
    recorder.attach_deployment_id("sample-deployment")
    return recorder.audit.to_json_dict()


def main():
    examples_dir = Path(__file__).resolve().parent.parent / "examples"
    examples_dir.mkdir(exist_ok=True)
    audits_path = examples_dir / "sample_audits.json"

    audits = [replay(trace) for trace in TRACES]

    with open(audits_path, "w") as f:
        json.dump(audits, f, indent=2)

    print(f"Generated {len(audits)} sample audits -> {audits_path}")


if __name__ == "__main__":
    main()
