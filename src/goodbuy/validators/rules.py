"""組み込みのクロスセクション・ビジネスルール。

各ルールは以下の流れで判定する。

1. 必要なサブセクション・フィールドを読む
2. いずれかが未回答なら ``passed=True``（データ不足）を返す。未回答は違反としない
3. 両セクションから派生値を計算し、固定の閾値と比較する
4. 違反時は実際の値を含むメッセージ、該当フィールド、推奨アクションを返す

閾値はビジネス上の定数であり、設定で変更するものではない。
"""

from collections.abc import Iterable, Sequence

from goodbuy.models.snapshot import CrossSectionData
from goodbuy.models.validation import ValidationRule, ValidationRuleResult

INSUFFICIENT_DATA_MESSAGE = "Insufficient data for validation"


def _insufficient() -> ValidationRuleResult:
    return ValidationRuleResult(passed=True, message=INSUFFICIENT_DATA_MESSAGE)


def _missing(*values: object) -> bool:
    return any(v is None for v in values)


def _millions(amount: float) -> str:
    return f"${amount / 1_000_000:.1f}M"


def _check_revenue_growth(data: CrossSectionData) -> ValidationRuleResult:
    financial = data.financial_performance
    projections = data.multi_year_projections
    if financial is None or projections is None or not projections.base_case:
        return _insufficient()

    historical = [financial.revenue_year1, financial.revenue_year2, financial.revenue_year3]
    projected = [p.revenue for p in projections.base_case[:3]]
    # 予測成長率は基準ケースの3年分から算出する
    if len(projected) < 3 or _missing(*historical) or _missing(*projected):
        return _insufficient()
    # 基準年の売上が0の場合は成長率が定義できない
    if historical[0] == 0 or projected[0] == 0:
        return _insufficient()

    historical_growth = (historical[-1] - historical[0]) / historical[0] * 100 / (len(historical) - 1)
    projected_growth = (projected[-1] - projected[0]) / projected[0] * 100 / (len(projected) - 1)

    if abs(projected_growth - historical_growth) > 50:
        return ValidationRuleResult(
            passed=False,
            message=(
                f"Projected growth rate ({projected_growth:.1f}%) significantly differs "
                f"from historical rate ({historical_growth:.1f}%)"
            ),
            affected_fields=["multiYearProjections.baseCase", "financialPerformance.revenueYear3"],
            suggested_action="Review projection assumptions or provide justification for growth rate changes",
        )

    return ValidationRuleResult(
        passed=True, message="Revenue growth projections are consistent with historical data"
    )


def _check_working_capital(data: CrossSectionData) -> ValidationRuleResult:
    financial = data.financial_performance
    optimization = data.financial_optimization
    if financial is None or optimization is None or optimization.working_capital_percentage is None:
        return _insufficient()

    revenue = financial.revenue_year3
    wc_percentage = optimization.working_capital_percentage

    # 売上1,000万ドル超の事業は運転資本比率が低いはず
    if revenue is not None and revenue > 10_000_000 and wc_percentage > 20:
        return ValidationRuleResult(
            passed=False,
            message=(
                f"Working capital percentage ({wc_percentage:g}%) is high for a business "
                f"of this size ({_millions(revenue)} revenue)"
            ),
            affected_fields=["financialOptimization.workingCapitalPercentage"],
            suggested_action="Consider working capital optimization strategies for larger businesses",
        )

    if wc_percentage > 15 and optimization.working_capital_reduction == 0:
        return ValidationRuleResult(
            passed=False,
            message="Working capital reduction opportunity not identified despite high working capital percentage",
            affected_fields=["financialOptimization.workingCapitalReduction"],
            suggested_action="Identify specific working capital reduction opportunities",
        )

    return ValidationRuleResult(passed=True, message="Working capital appears optimized for business size")


def _check_key_person_risk(data: CrossSectionData) -> ValidationRuleResult:
    operational = data.operational_strategic
    scalability = data.operational_scalability
    if operational is None or scalability is None:
        return _insufficient()

    risk = operational.key_person_risk
    documentation = scalability.process_documentation_percentage
    if _missing(risk, documentation):
        return _insufficient()

    affected = ["operationalStrategic.keyPersonRisk", "operationalScalability.processDocumentationPercentage"]
    if risk == "high" and documentation > 80:
        return ValidationRuleResult(
            passed=False,
            message="High key person risk inconsistent with high process documentation (80%+)",
            affected_fields=affected,
            suggested_action="Reconcile key person risk assessment with actual process documentation level",
        )
    if risk == "low" and documentation < 60:
        return ValidationRuleResult(
            passed=False,
            message="Low key person risk inconsistent with low process documentation (<60%)",
            affected_fields=affected,
            suggested_action="Review key person risk assessment or improve process documentation",
        )

    return ValidationRuleResult(passed=True, message="Key person risk aligns with operational documentation")


def _check_ip_consistency(data: CrossSectionData) -> ValidationRuleResult:
    competitive = data.competitive_market
    strategic = data.strategic_value_drivers
    if competitive is None or strategic is None or competitive.intellectual_property_value is None:
        return _insufficient()

    ip_value = competitive.intellectual_property_value
    patents = strategic.patents
    trademarks = strategic.trademarks
    affected = ["competitiveMarket.intellectualPropertyValue", "strategicValueDrivers.patents"]

    if (
        ip_value == "significant"
        and not _missing(patents, trademarks, strategic.has_trade_secrets)
        and patents == 0
        and trademarks == 0
        and not strategic.has_trade_secrets
    ):
        return ValidationRuleResult(
            passed=False,
            message="Claimed significant IP value not supported by actual IP portfolio",
            affected_fields=affected,
            suggested_action="Document actual IP assets or revise IP value assessment",
        )

    has_portfolio = (patents is not None and patents > 5) or (trademarks is not None and trademarks > 3)
    if has_portfolio and ip_value == "none":
        return ValidationRuleResult(
            passed=False,
            message="Substantial IP portfolio not reflected in competitive advantage assessment",
            affected_fields=affected,
            suggested_action="Update competitive advantage assessment to reflect IP assets",
        )

    return ValidationRuleResult(passed=True, message="IP portfolio aligns with competitive advantage claims")


def _check_growth_investment(data: CrossSectionData) -> ValidationRuleResult:
    enhancement = data.value_enhancement
    scenarios = data.strategic_scenario_planning
    if enhancement is None or scenarios is None or scenarios.aggressive_scenario is None:
        return _insufficient()

    capacity = enhancement.growth_investment_capacity
    aggressive = scenarios.aggressive_scenario.investment_amount
    if _missing(capacity, aggressive):
        return _insufficient()

    if aggressive > capacity * 2:
        return ValidationRuleResult(
            passed=False,
            message=(
                f"Aggressive scenario investment ({_millions(aggressive)}) exceeds "
                f"realistic capacity ({_millions(capacity)})"
            ),
            affected_fields=["strategicScenarioPlanning.aggressiveScenario", "valueEnhancement.growthInvestmentCapacity"],
            suggested_action="Adjust scenario investments to realistic capacity or increase investment capacity",
        )

    return ValidationRuleResult(passed=True, message="Growth investment scenarios align with stated capacity")


def _check_exit_readiness(data: CrossSectionData) -> ValidationRuleResult:
    scenarios = data.strategic_scenario_planning
    if scenarios is None:
        return _insufficient()

    timeline = scenarios.preferred_exit_timeline
    readiness = scenarios.transaction_readiness
    advisors = scenarios.advisors_engaged
    if readiness is None:
        return _insufficient()

    if timeline == "one2years" and readiness == "significant":
        return ValidationRuleResult(
            passed=False,
            message="Short exit timeline (1-2 years) inconsistent with significant preparation needs",
            affected_fields=[
                "strategicScenarioPlanning.preferredExitTimeline",
                "strategicScenarioPlanning.transactionReadiness",
            ],
            suggested_action="Extend exit timeline or accelerate transaction preparation",
        )

    # 空リストも「アドバイザー未起用」として扱う
    if readiness == "ready" and advisors is not None and (not advisors or "none" in advisors):
        return ValidationRuleResult(
            passed=False,
            message="Transaction-ready status inconsistent with no advisors engaged",
            affected_fields=[
                "strategicScenarioPlanning.transactionReadiness",
                "strategicScenarioPlanning.advisorsEngaged",
            ],
            suggested_action="Engage transaction advisors or revise readiness assessment",
        )

    return ValidationRuleResult(passed=True, message="Exit strategy components are aligned")


def _check_margin_evolution(data: CrossSectionData) -> ValidationRuleResult:
    projections = data.multi_year_projections
    scalability = data.operational_scalability
    if projections is None or scalability is None:
        return _insufficient()

    current = projections.current_gross_margin
    projected = projections.projected_gross_margin_year5
    if _missing(current, projected):
        return _insufficient()

    improvement = projected - current
    opportunities = scalability.process_optimization_opportunities

    if improvement > 10 and opportunities is not None:
        total_savings = sum(o.annual_savings or 0 for o in opportunities)
        if total_savings == 0:
            return ValidationRuleResult(
                passed=False,
                message=f"Projected margin improvement ({improvement:.1f}%) lacks supporting optimization initiatives",
                affected_fields=[
                    "multiYearProjections.projectedGrossMarginYear5",
                    "operationalScalability.processOptimizationOpportunities",
                ],
                suggested_action="Identify specific process optimizations or reduce margin improvement projections",
            )

    if improvement > 25:
        return ValidationRuleResult(
            passed=False,
            message=f"Projected margin improvement ({improvement:.1f}%) exceeds realistic limits",
            affected_fields=["multiYearProjections.projectedGrossMarginYear5"],
            suggested_action="Reduce projected margin improvement to realistic levels (<25%)",
        )

    return ValidationRuleResult(passed=True, message="Margin evolution projections appear realistic")


def _check_debt_service(data: CrossSectionData) -> ValidationRuleResult:
    financial = data.financial_performance
    optimization = data.financial_optimization
    if financial is None or optimization is None:
        return _insufficient()

    cash_flow = financial.cash_flow_year3
    debt_service = optimization.debt_service_requirements
    if _missing(cash_flow, debt_service):
        return _insufficient()

    if debt_service > 0:
        coverage = cash_flow / debt_service
        if coverage < 1.25:
            return ValidationRuleResult(
                passed=False,
                message=f"Debt service coverage ratio ({coverage:.2f}) below acceptable minimum (1.25)",
                affected_fields=["financialOptimization.debtServiceRequirements", "financialPerformance.cashFlowYear3"],
                suggested_action="Improve cash flow or reduce debt service requirements",
            )

    return ValidationRuleResult(passed=True, message="Debt service coverage is adequate")


def _check_customer_concentration(data: CrossSectionData) -> ValidationRuleResult:
    customer = data.customer_risk_analysis
    if customer is None or customer.customer_concentration_risk is None:
        return _insufficient()

    renewal = customer.contract_renewal_rate
    length = customer.average_contract_length
    weak_terms = (renewal is not None and renewal < 80) or (length is not None and length < 12)

    if customer.customer_concentration_risk == "high" and weak_terms:
        return ValidationRuleResult(
            passed=False,
            message="High customer concentration risk not mitigated by strong contract terms",
            affected_fields=["customerRiskAnalysis.contractRenewalRate", "customerRiskAnalysis.averageContractLength"],
            suggested_action="Improve contract terms or diversify customer base",
        )

    return ValidationRuleResult(passed=True, message="Customer concentration risk appropriately managed")


def _check_technology_investment(data: CrossSectionData) -> ValidationRuleResult:
    competitive = data.competitive_market
    scalability = data.operational_scalability
    if competitive is None or scalability is None:
        return _insufficient()

    advantage = competitive.technology_advantage
    investment = scalability.technology_investment_three_year
    if _missing(advantage, investment):
        return _insufficient()

    if advantage == "leading" and investment < 100_000:
        return ValidationRuleResult(
            passed=False,
            message="Leading technology advantage not supported by significant investment",
            affected_fields=["competitiveMarket.technologyAdvantage", "operationalScalability.technologyInvestmentThreeYear"],
            suggested_action="Increase technology investment or revise advantage assessment",
        )

    return ValidationRuleResult(passed=True, message="Technology investment aligns with competitive position")


VALIDATION_RULES: tuple[ValidationRule, ...] = (
    ValidationRule(
        id="revenue-growth-consistency",
        name="Revenue Growth Consistency",
        description="Revenue projections should align with historical growth patterns",
        category="consistency",
        severity="warning",
        sections=["financial-performance", "multi-year-projections"],
        check=_check_revenue_growth,
    ),
    ValidationRule(
        id="working-capital-optimization",
        name="Working Capital Optimization",
        description="Working capital should be optimized relative to business size and industry",
        category="business_logic",
        severity="warning",
        sections=["financial-performance", "financial-optimization"],
        check=_check_working_capital,
    ),
    ValidationRule(
        id="key-person-risk-consistency",
        name="Key Person Risk Consistency",
        description="Key person risk should align with process documentation and management depth",
        category="consistency",
        severity="error",
        sections=["operational-strategic", "operational-scalability"],
        check=_check_key_person_risk,
    ),
    ValidationRule(
        id="ip-consistency",
        name="Competitive Advantage IP Consistency",
        description="IP portfolio should support claimed competitive advantages",
        category="consistency",
        severity="warning",
        sections=["competitive-market", "strategic-value-drivers"],
        check=_check_ip_consistency,
    ),
    ValidationRule(
        id="growth-investment-capacity-scenarios",
        name="Growth Investment Capacity vs. Scenarios",
        description="Growth investment capacity should support strategic scenarios",
        category="business_logic",
        severity="error",
        sections=["value-enhancement", "strategic-scenario-planning"],
        check=_check_growth_investment,
    ),
    ValidationRule(
        id="exit-strategy-readiness",
        name="Exit Strategy Readiness",
        description="Exit timeline should align with transaction readiness and advisor engagement",
        category="business_logic",
        severity="warning",
        sections=["strategic-scenario-planning"],
        check=_check_exit_readiness,
    ),
    ValidationRule(
        id="margin-evolution-realism",
        name="Margin Evolution Realism",
        description="Projected margin improvements should be achievable",
        category="business_logic",
        severity="warning",
        sections=["multi-year-projections", "operational-scalability"],
        check=_check_margin_evolution,
    ),
    ValidationRule(
        id="debt-service-coverage",
        name="Debt Service Coverage",
        description="Debt service requirements should be covered by cash flow",
        category="regulatory",
        severity="error",
        sections=["financial-performance", "financial-optimization"],
        check=_check_debt_service,
    ),
    ValidationRule(
        id="customer-concentration-revenue-quality",
        name="Customer Concentration vs. Revenue Quality",
        description="High customer concentration should align with contract quality",
        category="consistency",
        severity="warning",
        sections=["customer-risk"],
        check=_check_customer_concentration,
    ),
    ValidationRule(
        id="technology-investment-advantage",
        name="Technology Investment vs. Advantage",
        description="Technology investments should support competitive advantage claims",
        category="consistency",
        severity="warning",
        sections=["competitive-market", "operational-scalability"],
        check=_check_technology_investment,
    ),
)


def get_validation_rules() -> list[ValidationRule]:
    """組み込みルールの一覧を返す。呼び出し側で変更しても正規リストには影響しない。"""
    return list(VALIDATION_RULES)


def get_validation_rule_by_id(rule_id: str) -> ValidationRule | None:
    """IDが完全一致する組み込みルールを返す。"""
    return next((r for r in VALIDATION_RULES if r.id == rule_id), None)


def filter_rules_by_category(rules: Iterable[ValidationRule], category: str) -> list[ValidationRule]:
    return [r for r in rules if r.category == category]


def filter_rules_by_severity(rules: Iterable[ValidationRule], severity: str) -> list[ValidationRule]:
    return [r for r in rules if r.severity == severity]


def filter_rules_for_sections(rules: Iterable[ValidationRule], section_ids: Sequence[str]) -> list[ValidationRule]:
    """指定セクションのいずれかを参照するルールを返す。"""
    return [r for r in rules if r.affects_any(list(section_ids))]
