"""Audit recorder - accumulates the trace of one decision evaluation.

The evaluator drives a recorder through a fixed lifecycle:

    recorder = AuditRecorder.begin(key, name, hit_policy, strict_mode, inputs)
    recorder.open_rule(1)
    recorder.record_condition(1, 1, "inputEntry1", True)
    recorder.mark_rule_valid(1)
    recorder.close_rule(1)
    recorder.record_conclusion(1, 1, "outputEntry1", "APPROVE")
    audit = recorder.stop_audit()

A recorder belongs to a single evaluation and is not thread-safe. Once
stopped it hands out a frozen DecisionExecutionAudit; the only change still
allowed is attaching the deployment id.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from dmn_audit.audit.exceptions import (
    AuditClosedError,
    AuditProtocolError,
    InvalidHitPolicyError,
)
from dmn_audit.audit.types import classify_variables, snapshot_variables
from dmn_audit.config import settings
from dmn_audit.schemas.audit import (
    DecisionExecutionAudit,
    ExpressionExecution,
    HitPolicy,
    RuleExecutionAudit,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _hit_policy_tag(hit_policy: HitPolicy | str, validate: bool) -> str:
    """Canonical short name for hit_policy; stored verbatim unless validating."""
    if isinstance(hit_policy, HitPolicy):
        return hit_policy.value
    if validate:
        try:
            return HitPolicy(hit_policy).value
        except ValueError:
            raise InvalidHitPolicyError(f"Unknown hit policy: {hit_policy!r}") from None
    return hit_policy


@dataclass
class _RuleEntry:
    """Mutable per-rule state while the evaluation is running."""

    rule_number: int
    start_time: datetime
    end_time: datetime | None = None
    valid: bool = False
    condition_results: dict[int, ExpressionExecution] = field(default_factory=dict)
    conclusion_results: dict[int, ExpressionExecution] = field(default_factory=dict)

    @property
    def closed(self) -> bool:
        return self.end_time is not None

    def freeze(self) -> RuleExecutionAudit:
        return RuleExecutionAudit(
            rule_number=self.rule_number,
            start_time=self.start_time,
            end_time=self.end_time,
            valid=self.valid,
            condition_results=dict(self.condition_results),
            conclusion_results=dict(self.conclusion_results),
        )


class AuditRecorder:
    """Builds the DecisionExecutionAudit for one decision evaluation."""

    def __init__(
        self,
        decision_key: str,
        decision_name: str | None,
        hit_policy: HitPolicy | str,
        strict_mode: bool,
        input_variables: Mapping[str, Any] | None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        validate_hit_policy: bool | None = None,
    ) -> None:
        if validate_hit_policy is None:
            validate_hit_policy = settings.validate_hit_policy

        self._clock = clock
        self._start_time = clock()
        self._decision_key = decision_key
        self._decision_name = decision_name or ""
        self._hit_policy = _hit_policy_tag(hit_policy, validate_hit_policy)
        self._strict_mode = bool(strict_mode)

        self._input_variable_types = classify_variables(input_variables)
        self._input_variables = snapshot_variables(input_variables)

        self._rules: dict[int, _RuleEntry] = {}
        self._failed = False
        self._exception_message: str | None = None
        self._deployment_id: str | None = None
        self._audit: DecisionExecutionAudit | None = None

    @classmethod
    def begin(
        cls,
        decision_key: str,
        decision_name: str | None,
        hit_policy: HitPolicy | str,
        strict_mode: bool,
        input_variables: Mapping[str, Any] | None,
        **kwargs: Any,
    ) -> "AuditRecorder":
        """Start auditing a decision evaluation.

        Stamps the start time, classifies every input variable and takes a
        defensive snapshot of the inputs (see dmn_audit.audit.types).
        """
        recorder = cls(
            decision_key, decision_name, hit_policy, strict_mode, input_variables, **kwargs
        )
        logger.debug(
            "Audit started for decision %s (%d input variables)",
            decision_key,
            len(recorder._input_variables),
        )
        return recorder

    @property
    def decision_key(self) -> str:
        return self._decision_key

    @property
    def closed(self) -> bool:
        return self._audit is not None

    @property
    def audit(self) -> DecisionExecutionAudit:
        """The stopped audit, or a point-in-time copy while still open."""
        if self._audit is not None:
            return self._audit
        return self._build(end_time=None)

    # Rule lifecycle

    def open_rule(self, rule_number: int) -> None:
        self._ensure_open("open rule")
        if rule_number in self._rules:
            raise AuditProtocolError(
                f"Rule {rule_number} of decision '{self._decision_key}' was already opened"
            )
        self._rules[rule_number] = _RuleEntry(rule_number=rule_number, start_time=self._now())

    def close_rule(self, rule_number: int) -> None:
        self._ensure_open("close rule")
        rule = self._open_rule_entry(rule_number, "close")
        rule.end_time = self._now(not_before=rule.start_time)

    def mark_rule_valid(self, rule_number: int) -> None:
        self._ensure_open("mark rule valid")
        self._rule_entry(rule_number, "mark valid").valid = True

    def record_condition(
        self,
        rule_number: int,
        input_number: int,
        input_entry_id: str,
        result: bool | None,
        exception_message: str | None = None,
    ) -> None:
        """Record the outcome of a condition (input entry) cell."""
        self._ensure_open("record condition")
        rule = self._open_rule_entry(rule_number, "record condition for")
        self._put(
            rule.condition_results,
            "input",
            rule_number,
            input_number,
            ExpressionExecution(
                expression_id=input_entry_id,
                result=result,
                exception_message=exception_message,
            ),
        )

    def record_conclusion(
        self,
        rule_number: int,
        output_number: int,
        output_entry_id: str,
        result: Any,
        exception_message: str | None = None,
    ) -> None:
        """Record the outcome of a conclusion (output entry) cell of a valid rule."""
        self._ensure_open("record conclusion")
        rule = self._rule_entry(rule_number, "record conclusion for")
        if not rule.valid:
            raise AuditProtocolError(
                f"Cannot record conclusion for rule {rule_number}: rule is not marked valid"
            )
        self._put(
            rule.conclusion_results,
            "output",
            rule_number,
            output_number,
            ExpressionExecution(
                expression_id=output_entry_id,
                result=result,
                exception_message=exception_message,
            ),
        )

    # Decision level

    def mark_failed(self, exception_message: str | None) -> None:
        self._ensure_open("mark failed")
        if self._failed:
            logger.warning(
                "Audit for decision %s already failed with %r; replacing with %r",
                self._decision_key,
                self._exception_message,
                exception_message,
            )
        self._failed = True
        self._exception_message = exception_message

    def attach_deployment_id(self, deployment_id: str | None) -> None:
        """Set the deployment id; the only change allowed after stop_audit()."""
        if self._audit is not None:
            self._audit = self._audit.model_copy(update={"dmn_deployment_id": deployment_id})
        self._deployment_id = deployment_id

    def stop_audit(self) -> DecisionExecutionAudit:
        self._ensure_open("stop audit")
        unclosed = sorted(n for n, rule in self._rules.items() if not rule.closed)
        if unclosed:
            logger.warning(
                "Audit for decision %s stopped with open rules %s",
                self._decision_key,
                unclosed,
            )
        self._audit = self._build(end_time=self._now(not_before=self._start_time))
        logger.debug(
            "Audit stopped for decision %s: %d rules, failed=%s",
            self._decision_key,
            len(self._rules),
            self._failed,
        )
        return self._audit

    # Internals

    def _now(self, not_before: datetime | None = None) -> datetime:
        now = self._clock()
        if not_before is not None and now < not_before:
            return not_before
        return now

    def _ensure_open(self, operation: str) -> None:
        if self._audit is not None:
            raise AuditClosedError(operation, self._decision_key)

    def _rule_entry(self, rule_number: int, operation: str) -> _RuleEntry:
        try:
            return self._rules[rule_number]
        except KeyError:
            raise AuditProtocolError(
                f"Cannot {operation} rule {rule_number}: rule was never opened"
            ) from None

    def _open_rule_entry(self, rule_number: int, operation: str) -> _RuleEntry:
        rule = self._rule_entry(rule_number, operation)
        if rule.closed:
            raise AuditProtocolError(f"Cannot {operation} rule {rule_number}: rule is closed")
        return rule

    @staticmethod
    def _put(
        results: dict[int, ExpressionExecution],
        kind: str,
        rule_number: int,
        column: int,
        execution: ExpressionExecution,
    ) -> None:
        if column in results:
            raise AuditProtocolError(
                f"Rule {rule_number} already has a result for {kind} column {column}"
            )
        results[column] = execution

    def _build(self, end_time: datetime | None) -> DecisionExecutionAudit:
        return DecisionExecutionAudit(
            decision_key=self._decision_key,
            decision_name=self._decision_name,
            hit_policy=self._hit_policy,
            dmn_deployment_id=self._deployment_id,
            start_time=self._start_time,
            end_time=end_time,
            input_variables=dict(self._input_variables),
            input_variable_types=dict(self._input_variable_types),
            rule_executions={n: rule.freeze() for n, rule in self._rules.items()},
            failed=self._failed,
            exception_message=self._exception_message,
            strict_mode=self._strict_mode,
        )
