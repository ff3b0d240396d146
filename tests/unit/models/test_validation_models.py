"""バリデーション結果・ルールモデルのユニットテスト。"""

from goodbuy.models.snapshot import CrossSectionData
from goodbuy.models.validation import RuleExecution, ValidationRule, ValidationRuleResult


def _always_pass(data: CrossSectionData) -> ValidationRuleResult:
    return ValidationRuleResult(passed=True, message="ok")


def _make_rule(**overrides: object) -> ValidationRule:
    fields: dict[str, object] = {
        "id": "custom-rule",
        "name": "Custom Rule",
        "description": "A custom rule",
        "category": "best_practice",
        "severity": "info",
        "sections": ["financial-performance", "customer-risk"],
        "check": _always_pass,
    }
    fields.update(overrides)
    return ValidationRule(**fields)  # type: ignore[arg-type]


class TestValidationRuleResult:
    def test_optional_fields_default_none(self) -> None:
        result = ValidationRuleResult(passed=True, message="ok")
        assert result.affected_fields is None
        assert result.suggested_action is None
        assert result.related_sections is None

    def test_dump_by_alias_uses_camel_case(self) -> None:
        result = ValidationRuleResult(
            passed=False,
            message="bad",
            affected_fields=["a.b"],
            suggested_action="fix it",
        )
        dumped = result.model_dump(by_alias=True)
        assert dumped["affectedFields"] == ["a.b"]
        assert dumped["suggestedAction"] == "fix it"
        assert "relatedSections" in dumped


class TestValidationRule:
    def test_evaluate_calls_check(self) -> None:
        rule = _make_rule()
        result = rule.evaluate(CrossSectionData())
        assert result.passed is True
        assert result.message == "ok"

    def test_metadata_serialization_excludes_check(self) -> None:
        dumped = _make_rule().model_dump(mode="json")
        assert "check" not in dumped
        assert dumped["id"] == "custom-rule"
        assert dumped["category"] == "best_practice"
        assert dumped["sections"] == ["financial-performance", "customer-risk"]

    def test_affects_any(self) -> None:
        rule = _make_rule()
        assert rule.affects_any(["customer-risk"])
        assert rule.affects_any({"financial-performance", "value-enhancement"})
        assert not rule.affects_any(["multi-year-projections"])
        assert not rule.affects_any([])


class TestRuleExecution:
    def test_succeeded_without_fault(self) -> None:
        execution = RuleExecution(rule=_make_rule(), result=ValidationRuleResult(passed=True, message="ok"))
        assert execution.succeeded
        assert execution.passed

    def test_fault_marks_failure(self) -> None:
        execution = RuleExecution(
            rule=_make_rule(),
            result=ValidationRuleResult(passed=False, message="Rule execution failed: boom"),
            fault="RuntimeError('boom')",
        )
        assert not execution.succeeded
        assert not execution.passed
