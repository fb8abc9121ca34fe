"""Decision execution audit schemas.

These are the values handed to downstream consumers once an evaluation has
been stopped. Wire names (``decisionKey``, ``ruleExecutions``, ...) are a
stable contract; always serialize by alias.
"""

import copy
from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


class HitPolicy(str, Enum):
    """Standard decision table hit policies, by canonical short name."""

    UNIQUE = "UNIQUE"
    FIRST = "FIRST"
    PRIORITY = "PRIORITY"
    ANY = "ANY"
    COLLECT = "COLLECT"
    RULE_ORDER = "RULE ORDER"
    OUTPUT_ORDER = "OUTPUT ORDER"


class ReadOnlyDict(dict):
    """dict that refuses mutation; used for every mapping on an audit value."""

    def _read_only(self, *args: Any, **kwargs: Any) -> None:
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _read_only
    clear = pop = popitem = setdefault = update = _read_only

    def __copy__(self) -> "ReadOnlyDict":
        return self

    def __deepcopy__(self, memo: dict) -> "ReadOnlyDict":
        return type(self)(copy.deepcopy(dict(self), memo))

    def __reduce__(self):
        return (type(self), (dict(self),))


_AUDIT_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class ExpressionExecution(BaseModel):
    """Outcome of one condition or conclusion cell."""

    model_config = _AUDIT_CONFIG

    expression_id: str
    result: Any = None
    exception_message: str | None = None

    @field_serializer("result", mode="wrap", when_used="json")
    def serialize_result(self, value: Any, handler: SerializerFunctionWrapHandler) -> Any:
        """Domain values JSON cannot represent degrade to their text form."""
        try:
            return handler(value)
        except ValueError:
            return str(value)


class RuleExecutionAudit(BaseModel):
    """Trace of one rule (row) of the decision table."""

    model_config = _AUDIT_CONFIG

    rule_number: int
    start_time: datetime
    end_time: datetime | None = None
    valid: bool = False
    condition_results: Annotated[
        dict[int, ExpressionExecution], AfterValidator(ReadOnlyDict)
    ] = Field(default_factory=ReadOnlyDict)
    conclusion_results: Annotated[
        dict[int, ExpressionExecution], AfterValidator(ReadOnlyDict)
    ] = Field(default_factory=ReadOnlyDict)


class DecisionExecutionAudit(BaseModel):
    """Complete audit of one decision evaluation."""

    model_config = _AUDIT_CONFIG

    decision_key: str
    decision_name: str = ""
    hit_policy: str
    dmn_deployment_id: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    input_variables: Annotated[dict[str, Any], AfterValidator(ReadOnlyDict)] = Field(
        default_factory=ReadOnlyDict
    )
    input_variable_types: Annotated[
        dict[str, str | None], AfterValidator(ReadOnlyDict)
    ] = Field(default_factory=ReadOnlyDict)
    rule_executions: Annotated[
        dict[int, RuleExecutionAudit], AfterValidator(ReadOnlyDict)
    ] = Field(default_factory=ReadOnlyDict)
    failed: bool = False
    exception_message: str | None = None
    strict_mode: bool = False

    @model_validator(mode="after")
    def check_consistency(self) -> "DecisionExecutionAudit":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("endTime precedes startTime")
        if set(self.input_variable_types) != set(self.input_variables):
            raise ValueError("inputVariableTypes and inputVariables have different keys")
        for number, rule in self.rule_executions.items():
            if number != rule.rule_number:
                raise ValueError(
                    f"ruleExecutions key {number} does not match ruleNumber {rule.rule_number}"
                )
        return self

    @property
    def stopped(self) -> bool:
        return self.end_time is not None

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "DecisionExecutionAudit":
        """Rebuild an audit from its wire form."""
        return cls.model_validate(data)
