"""クロスセクション・バリデーションエンジン。"""

import logging
import math
from collections import Counter
from collections.abc import Iterable
from typing import Any

from goodbuy.models.snapshot import CrossSectionData
from goodbuy.models.validation import (
    CATEGORIES,
    CategoryStats,
    CrossSectionValidationResult,
    RuleExecution,
    ValidationRule,
    ValidationRuleResult,
    ValidationSummary,
)
from goodbuy.validators.rules import (
    VALIDATION_RULES,
    filter_rules_by_category,
    filter_rules_by_severity,
    filter_rules_for_sections,
)

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 5
TOP_ACTION_COUNT = 3
FAULT_SUGGESTED_ACTION = "Review rule implementation"


class CrossSectionValidator:
    """質問票セクション間の整合性をルールに基づいて検証する。

    ルールリストはインスタンスごとに保持し、組み込みレジストリは変更しない。
    ``add_rule`` / ``remove_rule`` はスレッドセーフではないため、
    複数スレッドから変更する場合は呼び出し側で排他制御すること。
    """

    def __init__(self, custom_rules: Iterable[ValidationRule] | None = None) -> None:
        self._rules: list[ValidationRule] = [*VALIDATION_RULES, *(custom_rules or [])]

    @property
    def rules(self) -> list[ValidationRule]:
        return list(self._rules)

    def validate(self, data: CrossSectionData | dict[str, Any]) -> CrossSectionValidationResult:
        """全ルールを実行し、スコア付きの検証結果を返す。

        Args:
            data: 質問票スナップショット。dictの場合はCrossSectionDataとして検証する。

        Returns:
            重要度別の違反リスト・カテゴリ別集計・推奨事項を含む検証結果。
        """
        snapshot = _coerce(data)
        executions = [self._execute(rule, snapshot) for rule in self._rules]

        failed = [e for e in executions if not e.passed]
        errors = [e.result for e in failed if e.rule.severity == "error"]
        warnings = [e.result for e in failed if e.rule.severity == "warning"]
        info = [e.result for e in failed if e.rule.severity == "info"]

        total = len(executions)
        passed_count = total - len(failed)
        # ルールが1件もない場合は違反なしとして満点
        score = _half_up_percentage(passed_count, total) if total else 100

        summary = ValidationSummary(
            total_rules=total,
            passed_rules=passed_count,
            failed_rules=len(failed),
            by_category=self._category_stats(executions),
            by_severity={"error": len(errors), "warning": len(warnings), "info": len(info)},
        )

        logger.debug(
            "Cross-section validation finished: %d/%d rules passed (score=%d)",
            passed_count,
            total,
            score,
        )

        return CrossSectionValidationResult(
            is_valid=not errors,
            score=score,
            errors=errors,
            warnings=warnings,
            info=info,
            summary=summary,
            recommendations=self._generate_recommendations(executions),
            critical_issues=self._identify_critical_issues(executions),
        )

    def validate_rule(self, rule_id: str, data: CrossSectionData | dict[str, Any]) -> ValidationRuleResult | None:
        """指定IDのルールのみを実行する。未知のIDの場合はNone。"""
        rule = next((r for r in self._rules if r.id == rule_id), None)
        if rule is None:
            return None
        return self._execute(rule, _coerce(data)).result

    def get_rules_by_category(self, category: str) -> list[ValidationRule]:
        return filter_rules_by_category(self._rules, category)

    def get_rules_by_severity(self, severity: str) -> list[ValidationRule]:
        return filter_rules_by_severity(self._rules, severity)

    def get_rules_for_sections(self, section_ids: list[str]) -> list[ValidationRule]:
        return filter_rules_for_sections(self._rules, section_ids)

    def add_rule(self, rule: ValidationRule) -> None:
        """ルールを追加する。IDの重複は検査しない。"""
        self._rules.append(rule)

    def remove_rule(self, rule_id: str) -> bool:
        """IDが一致する最初のルールを削除する。削除した場合True。"""
        for index, rule in enumerate(self._rules):
            if rule.id == rule_id:
                del self._rules[index]
                return True
        return False

    @staticmethod
    def _execute(rule: ValidationRule, data: CrossSectionData) -> RuleExecution:
        """ルールを1件実行する。判定処理の例外はこのルールの失敗として閉じ込める。"""
        try:
            return RuleExecution(rule=rule, result=rule.evaluate(data))
        except Exception as e:
            logger.warning("Validation rule %s raised %s: %s", rule.id, type(e).__name__, e)
            return RuleExecution(
                rule=rule,
                result=ValidationRuleResult(
                    passed=False,
                    message=f"Rule execution failed: {str(e) or 'Unknown error'}",
                    suggested_action=FAULT_SUGGESTED_ACTION,
                ),
                fault=repr(e),
            )

    @staticmethod
    def _category_stats(executions: list[RuleExecution]) -> dict[str, CategoryStats]:
        stats = {category: CategoryStats() for category in CATEGORIES}
        for execution in executions:
            entry = stats.get(execution.rule.category)
            if entry is None:
                continue
            if execution.passed:
                entry.passed += 1
            else:
                entry.failed += 1
        return stats

    @staticmethod
    def _generate_recommendations(executions: list[RuleExecution]) -> list[str]:
        """エラー件数・整合性違反件数・頻出する推奨アクションから推奨事項を組み立てる。"""
        failed = [e for e in executions if not e.passed]
        recommendations: list[str] = []

        error_count = sum(1 for e in failed if e.rule.severity == "error")
        if error_count:
            recommendations.append(f"Address {error_count} critical validation error(s) before proceeding")

        consistency_count = sum(1 for e in failed if e.rule.category == "consistency")
        if consistency_count:
            recommendations.append(f"Resolve {consistency_count} data consistency issue(s) across sections")

        # Counterは初出順を保持し、most_commonは同数なら初出順で並ぶ
        action_counts = Counter(e.result.suggested_action for e in failed if e.result.suggested_action)
        recommendations.extend(action for action, _ in action_counts.most_common(TOP_ACTION_COUNT))

        return recommendations[:MAX_RECOMMENDATIONS]

    @staticmethod
    def _identify_critical_issues(executions: list[RuleExecution]) -> list[str]:
        failed_categories = Counter(e.rule.category for e in executions if not e.passed)
        issues: list[str] = []
        if failed_categories["regulatory"] > 0:
            issues.append("Regulatory compliance issues detected")
        if failed_categories["consistency"] > 3:
            issues.append("Widespread data consistency issues")
        if failed_categories["business_logic"] > 2:
            issues.append("Multiple business logic violations")
        return issues


def _coerce(data: CrossSectionData | dict[str, Any]) -> CrossSectionData:
    if isinstance(data, CrossSectionData):
        return data
    return CrossSectionData.model_validate(data)


def create_cross_section_validator(custom_rules: Iterable[ValidationRule] | None = None) -> CrossSectionValidator:
    """CrossSectionValidatorを生成する。"""
    return CrossSectionValidator(custom_rules)


def _half_up_percentage(part: int, total: int) -> int:
    # round()は偶数丸めのため、0.5は常に切り上げる
    return math.floor(part * 100 / total + 0.5)
