"""組み込みバリデーションルールのユニットテスト。"""

from typing import Any

import pytest

from goodbuy.models.snapshot import CrossSectionData
from goodbuy.models.validation import ValidationRuleResult
from goodbuy.validators.rules import (
    INSUFFICIENT_DATA_MESSAGE,
    VALIDATION_RULES,
    filter_rules_by_category,
    filter_rules_by_severity,
    filter_rules_for_sections,
    get_validation_rule_by_id,
    get_validation_rules,
)


def _run(rule_id: str, snapshot: dict[str, Any]) -> ValidationRuleResult:
    rule = get_validation_rule_by_id(rule_id)
    assert rule is not None
    return rule.evaluate(CrossSectionData.model_validate(snapshot))


def _snapshot(professional: dict[str, Any] | None = None, enterprise: dict[str, Any] | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if professional is not None:
        data["professional"] = professional
    if enterprise is not None:
        data["enterprise"] = enterprise
    return data


class TestRegistry:
    def test_rule_ids_are_unique(self) -> None:
        ids = [r.id for r in VALIDATION_RULES]
        assert len(ids) == len(set(ids)) == 10

    def test_get_validation_rules_returns_copy(self) -> None:
        rules = get_validation_rules()
        rules.clear()
        assert len(get_validation_rules()) == len(VALIDATION_RULES)

    def test_rule_sections_are_immutable(self) -> None:
        rule = get_validation_rules()[0]
        assert isinstance(rule.sections, tuple)
        with pytest.raises(AttributeError):
            rule.sections.append("value-enhancement")  # type: ignore[attr-defined]
        assert VALIDATION_RULES[0].sections == ("financial-performance", "multi-year-projections")

    def test_get_validation_rule_by_id(self) -> None:
        rule = get_validation_rule_by_id("debt-service-coverage")
        assert rule is not None
        assert rule.category == "regulatory"
        assert rule.severity == "error"

    def test_get_validation_rule_by_unknown_id(self) -> None:
        assert get_validation_rule_by_id("no-such-rule") is None

    def test_filter_by_category(self) -> None:
        rules = filter_rules_by_category(VALIDATION_RULES, "regulatory")
        assert [r.id for r in rules] == ["debt-service-coverage"]
        assert filter_rules_by_category(VALIDATION_RULES, "best_practice") == []

    def test_filter_by_severity(self) -> None:
        ids = {r.id for r in filter_rules_by_severity(VALIDATION_RULES, "error")}
        assert ids == {"key-person-risk-consistency", "growth-investment-capacity-scenarios", "debt-service-coverage"}

    def test_filter_for_sections(self) -> None:
        ids = [r.id for r in filter_rules_for_sections(VALIDATION_RULES, ["customer-risk", "value-enhancement"])]
        assert ids == ["growth-investment-capacity-scenarios", "customer-concentration-revenue-quality"]

    @pytest.mark.parametrize("rule", VALIDATION_RULES, ids=lambda r: r.id)
    def test_every_rule_passes_on_empty_snapshot(self, rule: Any) -> None:
        result = rule.evaluate(CrossSectionData())
        assert result.passed is True
        assert result.message == INSUFFICIENT_DATA_MESSAGE


class TestRevenueGrowthConsistency:
    def _data(self, projected: list[float]) -> dict[str, Any]:
        return _snapshot(
            professional={
                "financialPerformance": {"revenueYear1": 1_000_000, "revenueYear2": 1_050_000, "revenueYear3": 1_100_000}
            },
            enterprise={"multiYearProjections": {"baseCase": [{"revenue": r} for r in projected]}},
        )

    def test_flags_projection_far_above_history(self) -> None:
        result = _run("revenue-growth-consistency", self._data([1_000_000, 1_800_000, 3_200_000]))
        assert result.passed is False
        assert "110.0%" in result.message
        assert "5.0%" in result.message
        assert result.affected_fields == ["multiYearProjections.baseCase", "financialPerformance.revenueYear3"]
        assert result.suggested_action is not None

    def test_passes_consistent_projection(self) -> None:
        result = _run("revenue-growth-consistency", self._data([1_100_000, 1_200_000, 1_300_000]))
        assert result.passed is True

    def test_missing_historical_year_is_insufficient(self) -> None:
        data = _snapshot(
            professional={"financialPerformance": {"revenueYear1": 1_000_000, "revenueYear3": 1_100_000}},
            enterprise={"multiYearProjections": {"baseCase": [{"revenue": 1}, {"revenue": 2}, {"revenue": 3}]}},
        )
        result = _run("revenue-growth-consistency", data)
        assert result.passed is True
        assert result.message == INSUFFICIENT_DATA_MESSAGE

    def test_zero_base_revenue_is_insufficient(self) -> None:
        data = self._data([0, 1_000_000, 2_000_000])
        assert _run("revenue-growth-consistency", data).passed is True

    def test_two_year_projection_is_insufficient(self) -> None:
        # 予測成長率には基準ケース3年分が必要
        result = _run("revenue-growth-consistency", self._data([1_000_000, 3_000_000]))
        assert result.passed is True
        assert result.message == INSUFFICIENT_DATA_MESSAGE


class TestWorkingCapitalOptimization:
    def test_flags_high_percentage_for_large_business(self) -> None:
        data = _snapshot(
            professional={"financialPerformance": {"revenueYear3": 12_000_000}},
            enterprise={"financialOptimization": {"workingCapitalPercentage": 25, "workingCapitalReduction": 100_000}},
        )
        result = _run("working-capital-optimization", data)
        assert result.passed is False
        assert "$12.0M" in result.message
        assert result.affected_fields == ["financialOptimization.workingCapitalPercentage"]

    def test_flags_missing_reduction_opportunity(self) -> None:
        data = _snapshot(
            professional={"financialPerformance": {"revenueYear3": 2_000_000}},
            enterprise={"financialOptimization": {"workingCapitalPercentage": 18, "workingCapitalReduction": 0}},
        )
        result = _run("working-capital-optimization", data)
        assert result.passed is False
        assert result.affected_fields == ["financialOptimization.workingCapitalReduction"]

    def test_passes_with_reduction_identified(self) -> None:
        data = _snapshot(
            professional={"financialPerformance": {"revenueYear3": 2_000_000}},
            enterprise={"financialOptimization": {"workingCapitalPercentage": 18, "workingCapitalReduction": 50_000}},
        )
        assert _run("working-capital-optimization", data).passed is True

    def test_threshold_is_exclusive(self) -> None:
        data = _snapshot(
            professional={"financialPerformance": {"revenueYear3": 10_000_000}},
            enterprise={"financialOptimization": {"workingCapitalPercentage": 15, "workingCapitalReduction": 0}},
        )
        assert _run("working-capital-optimization", data).passed is True


class TestKeyPersonRiskConsistency:
    @pytest.mark.parametrize(
        ("risk", "documentation", "passed"),
        [
            ("high", 85, False),
            ("high", 80, True),
            ("low", 55, False),
            ("low", 60, True),
            ("medium", 10, True),
            ("critical", 95, True),
        ],
    )
    def test_thresholds(self, risk: str, documentation: float, passed: bool) -> None:
        data = _snapshot(
            professional={"operationalStrategic": {"keyPersonRisk": risk}},
            enterprise={"operationalScalability": {"processDocumentationPercentage": documentation}},
        )
        assert _run("key-person-risk-consistency", data).passed is passed

    def test_missing_documentation_is_insufficient(self) -> None:
        data = _snapshot(
            professional={"operationalStrategic": {"keyPersonRisk": "high"}},
            enterprise={"operationalScalability": {"technologyInvestmentThreeYear": 10}},
        )
        assert _run("key-person-risk-consistency", data).message == INSUFFICIENT_DATA_MESSAGE


class TestIpConsistency:
    def test_flags_significant_ip_without_portfolio(self) -> None:
        data = _snapshot(
            professional={"competitiveMarket": {"intellectualPropertyValue": "significant"}},
            enterprise={"strategicValueDrivers": {"patents": 0, "trademarks": 0, "hasTradeSecrets": False}},
        )
        result = _run("ip-consistency", data)
        assert result.passed is False
        assert result.affected_fields is not None
        assert "strategicValueDrivers.patents" in result.affected_fields

    def test_trade_secrets_support_significant_ip(self) -> None:
        data = _snapshot(
            professional={"competitiveMarket": {"intellectualPropertyValue": "significant"}},
            enterprise={"strategicValueDrivers": {"patents": 0, "trademarks": 0, "hasTradeSecrets": True}},
        )
        assert _run("ip-consistency", data).passed is True

    def test_flags_portfolio_with_no_ip_value(self) -> None:
        data = _snapshot(
            professional={"competitiveMarket": {"intellectualPropertyValue": "none"}},
            enterprise={"strategicValueDrivers": {"patents": 6, "trademarks": 0}},
        )
        result = _run("ip-consistency", data)
        assert result.passed is False
        assert "not reflected" in result.message

    def test_trademarks_alone_trigger_portfolio_check(self) -> None:
        data = _snapshot(
            professional={"competitiveMarket": {"intellectualPropertyValue": "none"}},
            enterprise={"strategicValueDrivers": {"trademarks": 4}},
        )
        assert _run("ip-consistency", data).passed is False

    def test_partial_portfolio_does_not_count_as_empty(self) -> None:
        data = _snapshot(
            professional={"competitiveMarket": {"intellectualPropertyValue": "significant"}},
            enterprise={"strategicValueDrivers": {"patents": 0}},
        )
        assert _run("ip-consistency", data).passed is True


class TestGrowthInvestmentCapacity:
    def _data(self, capacity: float, aggressive: float) -> dict[str, Any]:
        return _snapshot(
            professional={"valueEnhancement": {"growthInvestmentCapacity": capacity}},
            enterprise={"strategicScenarioPlanning": {"aggressiveScenario": {"investmentAmount": aggressive}}},
        )

    def test_flags_investment_above_twice_capacity(self) -> None:
        result = _run("growth-investment-capacity-scenarios", self._data(1_000_000, 2_500_000))
        assert result.passed is False
        assert "$2.5M" in result.message
        assert "$1.0M" in result.message

    def test_exactly_twice_capacity_passes(self) -> None:
        assert _run("growth-investment-capacity-scenarios", self._data(1_000_000, 2_000_000)).passed is True

    def test_missing_aggressive_scenario_is_insufficient(self) -> None:
        data = _snapshot(
            professional={"valueEnhancement": {"growthInvestmentCapacity": 1}},
            enterprise={"strategicScenarioPlanning": {"realisticGrowthRate": 10}},
        )
        assert _run("growth-investment-capacity-scenarios", data).message == INSUFFICIENT_DATA_MESSAGE


class TestExitStrategyReadiness:
    def _data(self, **fields: Any) -> dict[str, Any]:
        return _snapshot(enterprise={"strategicScenarioPlanning": fields})

    def test_flags_short_timeline_with_significant_prep(self) -> None:
        result = _run(
            "exit-strategy-readiness",
            self._data(preferredExitTimeline="one2years", transactionReadiness="significant"),
        )
        assert result.passed is False
        assert "1-2 years" in result.message

    def test_flags_ready_without_advisors(self) -> None:
        result = _run("exit-strategy-readiness", self._data(transactionReadiness="ready", advisorsEngaged=["none"]))
        assert result.passed is False
        assert result.affected_fields == [
            "strategicScenarioPlanning.transactionReadiness",
            "strategicScenarioPlanning.advisorsEngaged",
        ]

    def test_flags_ready_with_empty_advisor_list(self) -> None:
        result = _run("exit-strategy-readiness", self._data(transactionReadiness="ready", advisorsEngaged=[]))
        assert result.passed is False

    def test_ready_with_advisors_passes(self) -> None:
        result = _run("exit-strategy-readiness", self._data(transactionReadiness="ready", advisorsEngaged=["mna"]))
        assert result.passed is True

    def test_ready_without_advisor_answer_passes(self) -> None:
        assert _run("exit-strategy-readiness", self._data(transactionReadiness="ready")).passed is True


class TestMarginEvolutionRealism:
    def _data(self, current: float, projected: float, savings: list[float] | None) -> dict[str, Any]:
        scalability: dict[str, Any] = {"processDocumentationPercentage": 50}
        if savings is not None:
            scalability["processOptimizationOpportunities"] = [{"annualSavings": s} for s in savings]
        return _snapshot(
            enterprise={
                "multiYearProjections": {"currentGrossMargin": current, "projectedGrossMarginYear5": projected},
                "operationalScalability": scalability,
            }
        )

    def test_flags_unsupported_improvement(self) -> None:
        result = _run("margin-evolution-realism", self._data(30, 42, []))
        assert result.passed is False
        assert "12.0%" in result.message
        assert "lacks supporting" in result.message

    def test_supported_improvement_passes(self) -> None:
        assert _run("margin-evolution-realism", self._data(30, 42, [25_000])).passed is True

    def test_flags_unrealistic_improvement_even_with_savings(self) -> None:
        result = _run("margin-evolution-realism", self._data(20, 50, [1_000_000]))
        assert result.passed is False
        assert "exceeds realistic limits" in result.message

    def test_unsupported_check_precedes_limit_check(self) -> None:
        result = _run("margin-evolution-realism", self._data(20, 50, [0, 0]))
        assert "lacks supporting" in result.message

    def test_unknown_optimizations_only_apply_limit(self) -> None:
        assert _run("margin-evolution-realism", self._data(30, 42, None)).passed is True


class TestDebtServiceCoverage:
    def _data(self, cash_flow: float, debt_service: float) -> dict[str, Any]:
        return _snapshot(
            professional={"financialPerformance": {"cashFlowYear3": cash_flow}},
            enterprise={"financialOptimization": {"debtServiceRequirements": debt_service}},
        )

    def test_flags_low_coverage(self) -> None:
        result = _run("debt-service-coverage", self._data(100_000, 100_000))
        assert result.passed is False
        assert "(1.00)" in result.message
        assert "1.25" in result.message

    def test_zero_debt_service_passes(self) -> None:
        assert _run("debt-service-coverage", self._data(-50_000, 0)).passed is True

    def test_exact_minimum_passes(self) -> None:
        assert _run("debt-service-coverage", self._data(125_000, 100_000)).passed is True


class TestCustomerConcentration:
    @pytest.mark.parametrize(
        ("risk", "renewal", "length", "passed"),
        [
            ("high", 75, 24, False),
            ("high", 90, 6, False),
            ("high", 80, 12, True),
            ("medium", 10, 1, True),
        ],
    )
    def test_thresholds(self, risk: str, renewal: float, length: float, passed: bool) -> None:
        data = _snapshot(
            professional={
                "customerRiskAnalysis": {
                    "customerConcentrationRisk": risk,
                    "contractRenewalRate": renewal,
                    "averageContractLength": length,
                }
            }
        )
        assert _run("customer-concentration-revenue-quality", data).passed is passed

    def test_single_weak_term_is_enough(self) -> None:
        data = _snapshot(
            professional={"customerRiskAnalysis": {"customerConcentrationRisk": "high", "contractRenewalRate": 50}}
        )
        assert _run("customer-concentration-revenue-quality", data).passed is False


class TestTechnologyInvestmentAdvantage:
    @pytest.mark.parametrize(
        ("advantage", "investment", "passed"),
        [("leading", 99_999, False), ("leading", 100_000, True), ("parity", 0, True)],
    )
    def test_thresholds(self, advantage: str, investment: float, passed: bool) -> None:
        data = _snapshot(
            professional={"competitiveMarket": {"technologyAdvantage": advantage}},
            enterprise={"operationalScalability": {"technologyInvestmentThreeYear": investment}},
        )
        assert _run("technology-investment-advantage", data).passed is passed
