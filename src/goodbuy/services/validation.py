"""クロスセクション検証のサービス層。"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from goodbuy.models.errors import RuleNotFoundError, SnapshotParseError
from goodbuy.models.snapshot import CrossSectionData
from goodbuy.models.validation import (
    CrossSectionValidationResult,
    SectionCompleteness,
    TierCheckResult,
    ValidationRule,
    ValidationRuleResult,
)
from goodbuy.validators.cross_section import CrossSectionValidator
from goodbuy.validators.declarative import DeclarativeRuleLoader
from goodbuy.validators.tier import summarize_sections, validate_enterprise_tier, validate_professional_questionnaire

logger = logging.getLogger(__name__)


class ValidationService:
    """組み込みルールと宣言的ルールを束ねた検証サービス。"""

    def __init__(self, config_dir: Path, load_declarative_rules: bool = True) -> None:
        custom_rules: list[ValidationRule] = []
        if load_declarative_rules:
            custom_rules = DeclarativeRuleLoader(config_dir).load()
            logger.info("Loaded %d declarative validation rules", len(custom_rules))
        self._validator = CrossSectionValidator(custom_rules)

    @property
    def validator(self) -> CrossSectionValidator:
        return self._validator

    def validate(self, snapshot: dict[str, Any]) -> CrossSectionValidationResult:
        """スナップショットを全ルールで検証する。

        Raises:
            SnapshotParseError: スナップショットがスキーマに適合しない場合。
        """
        return self._validator.validate(self._parse(snapshot))

    def validate_rule(self, rule_id: str, snapshot: dict[str, Any]) -> ValidationRuleResult:
        """単一ルールで検証する。

        Raises:
            RuleNotFoundError: ルールIDが存在しない場合。
            SnapshotParseError: スナップショットがスキーマに適合しない場合。
        """
        result = self._validator.validate_rule(rule_id, self._parse(snapshot))
        if result is None:
            raise RuleNotFoundError(rule_id)
        return result

    def list_rules(
        self,
        category: str | None = None,
        severity: str | None = None,
        sections: list[str] | None = None,
    ) -> list[ValidationRule]:
        """条件に一致するルールを返す。条件を省略した場合は全件。"""
        rules = self._validator.rules
        if category is not None:
            rules = [r for r in rules if r.category == category]
        if severity is not None:
            rules = [r for r in rules if r.severity == severity]
        if sections:
            rules = [r for r in rules if r.affects_any(sections)]
        return rules

    def check_tiers(self, snapshot: dict[str, Any]) -> tuple[list[TierCheckResult], list[SectionCompleteness]]:
        """回答済みティアの送信時チェックとセクション回答状況を返す。"""
        data = self._parse(snapshot)
        results: list[TierCheckResult] = []
        if data.professional is not None:
            results.append(validate_professional_questionnaire(data.professional))
        if data.enterprise is not None:
            results.append(validate_enterprise_tier(data.enterprise))
        return results, summarize_sections(data)

    @staticmethod
    def _parse(snapshot: dict[str, Any]) -> CrossSectionData:
        try:
            return CrossSectionData.model_validate(snapshot)
        except ValidationError as e:
            raise SnapshotParseError(str(e)) from e
