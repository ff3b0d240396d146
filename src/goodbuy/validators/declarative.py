"""YAMLで定義する宣言的バリデーションルール。"""

import logging
import operator
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from goodbuy.models.errors import RuleDefinitionError
from goodbuy.models.snapshot import CrossSectionData
from goodbuy.models.validation import RuleCategory, RuleSeverity, ValidationRule, ValidationRuleResult
from goodbuy.validators.rules import INSUFFICIENT_DATA_MESSAGE

logger = logging.getLogger(__name__)

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "eq": operator.eq,
    "ne": operator.ne,
}


class RuleCondition(BaseModel):
    """違反条件。``field <operator> value`` または ``field <operator> compare_field + offset``。"""

    field: str
    operator: Literal["gt", "gte", "lt", "lte", "eq", "ne"]
    value: Any = None
    compare_field: str | None = None
    offset: float = 0

    @model_validator(mode="after")
    def _require_operand(self) -> "RuleCondition":
        if self.value is None and self.compare_field is None:
            raise ValueError("condition requires either 'value' or 'compare_field'")
        return self

    @property
    def fields(self) -> list[str]:
        return [self.field] if self.compare_field is None else [self.field, self.compare_field]


class DeclarativeRuleDefinition(BaseModel):
    """宣言的ルール定義（YAMLから読み込み）。"""

    id: str
    name: str
    description: str
    category: RuleCategory
    severity: RuleSeverity
    sections: list[str] = Field(default_factory=list)
    condition: RuleCondition
    message: str
    recommendation: str
    affected_fields: list[str] | None = None
    passed_message: str = "Rule conditions satisfied"

    def to_rule(self) -> ValidationRule:
        return ValidationRule(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            severity=self.severity,
            sections=tuple(self.sections),
            check=self._check,
        )

    def _check(self, data: CrossSectionData) -> ValidationRuleResult:
        cond = self.condition
        actual = resolve_field(data, cond.field)
        if cond.compare_field is not None:
            other = resolve_field(data, cond.compare_field)
            expected = None if other is None else other + cond.offset
        else:
            expected = cond.value
        if actual is None or expected is None:
            return ValidationRuleResult(passed=True, message=INSUFFICIENT_DATA_MESSAGE)

        if _OPERATORS[cond.operator](actual, expected):
            return ValidationRuleResult(
                passed=False,
                message=self.message.format(actual=actual, expected=expected),
                affected_fields=self.affected_fields or [_field_label(f) for f in cond.fields],
                suggested_action=self.recommendation,
                related_sections=self.sections or None,
            )
        return ValidationRuleResult(passed=True, message=self.passed_message)


def resolve_field(data: CrossSectionData, path: str) -> Any:
    """ドット区切りのcamelCaseパスで値を取り出す。途中が未回答ならNone。"""
    current: Any = data.model_dump(by_alias=True)
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _field_label(path: str) -> str:
    # "enterprise.financialOptimization.x" -> "financialOptimization.x"
    parts = path.split(".")
    return ".".join(parts[1:]) if parts[0] in ("professional", "enterprise") else path


class DeclarativeRuleLoader:
    """``validation-rules/*.yaml`` から宣言的ルールを読み込む。"""

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir
        self._rules: list[ValidationRule] | None = None

    def load(self) -> list[ValidationRule]:
        """ルールを読み込む。2回目以降はキャッシュを返す。

        Raises:
            RuleDefinitionError: ルール定義が不正な場合。
        """
        if self._rules is not None:
            return list(self._rules)

        rules: list[ValidationRule] = []
        rules_dir = self._config_dir / "validation-rules"
        if not rules_dir.exists():
            self._rules = rules
            return list(rules)

        for rule_file in sorted(rules_dir.glob("*.yaml")):
            with open(rule_file, encoding="utf-8") as f:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise RuleDefinitionError(rule_file.name, str(e)) from e
            if not data or "rules" not in data:
                continue
            for rule_data in data["rules"]:
                try:
                    definition = DeclarativeRuleDefinition.model_validate(rule_data)
                except ValidationError as e:
                    raise RuleDefinitionError(rule_file.name, str(e)) from e
                rules.append(definition.to_rule())
            logger.debug("Loaded declarative rules from %s", rule_file)

        self._rules = rules
        return list(rules)
