"""バリデーション関連のデータモデル。"""

from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from goodbuy.models.snapshot import CrossSectionData

RuleCategory = Literal["consistency", "business_logic", "regulatory", "best_practice"]
RuleSeverity = Literal["error", "warning", "info"]

# 集計対象のカテゴリは固定。登録ルールからは導出しない。
CATEGORIES: tuple[RuleCategory, ...] = ("consistency", "business_logic", "regulatory", "best_practice")
SEVERITIES: tuple[RuleSeverity, ...] = ("error", "warning", "info")


class ResultModel(BaseModel):
    """結果系モデルの共通設定。JSON出力はcamelCase。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ValidationRuleResult(ResultModel):
    """単一ルールの評価結果。"""

    passed: bool
    message: str
    affected_fields: list[str] | None = None
    suggested_action: str | None = None
    related_sections: list[str] | None = None


class ValidationRule(BaseModel):
    """バリデーションルール定義。

    メタデータ（id・カテゴリ・重要度・セクション）はシリアライズ可能で、
    判定処理 ``check`` はシリアライズ対象外。
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: RuleCategory
    severity: RuleSeverity
    sections: tuple[str, ...] = ()
    check: Callable[[CrossSectionData], ValidationRuleResult] = Field(exclude=True, repr=False)

    def evaluate(self, data: CrossSectionData) -> ValidationRuleResult:
        """スナップショットに対してルールを評価する。"""
        return self.check(data)

    def affects_any(self, section_ids: list[str] | set[str]) -> bool:
        """指定セクションのいずれかを参照するルールかどうか。"""
        return not set(self.sections).isdisjoint(section_ids)


class RuleExecution(BaseModel):
    """ルール1回分の実行結果。判定処理が例外を送出した場合は ``fault`` に内容を保持する。"""

    rule: ValidationRule
    result: ValidationRuleResult
    fault: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.fault is None

    @property
    def passed(self) -> bool:
        return self.result.passed


class CategoryStats(ResultModel):
    passed: int = 0
    failed: int = 0


class ValidationSummary(ResultModel):
    """ルール実行結果の集計。"""

    total_rules: int
    passed_rules: int
    failed_rules: int
    by_category: dict[str, CategoryStats]
    by_severity: dict[str, int]


class CrossSectionValidationResult(ResultModel):
    """クロスセクション検証の総合結果。"""

    is_valid: bool
    score: int
    errors: list[ValidationRuleResult] = Field(default_factory=list)
    warnings: list[ValidationRuleResult] = Field(default_factory=list)
    info: list[ValidationRuleResult] = Field(default_factory=list)
    summary: ValidationSummary
    recommendations: list[str] = Field(default_factory=list)
    critical_issues: list[str] = Field(default_factory=list)


class TierCheckResult(ResultModel):
    """ティア単位の送信時チェック結果。"""

    tier: Literal["professional", "enterprise"]
    is_valid: bool
    errors: list[str] = Field(default_factory=list)


class SectionCompleteness(ResultModel):
    """セクションごとの回答状況。"""

    section_id: str
    section_name: str
    present: bool
    field_count: int
    total_fields: int
