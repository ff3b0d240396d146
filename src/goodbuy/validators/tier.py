"""ティア単位の送信時チェックとセクション回答状況の集計。

クロスセクション検証とは別に、各ティアの質問票を送信する時点で
同一ティア内のフィールド間整合性をチェックする。
"""

from collections import Counter
from collections.abc import Iterable
from typing import get_args

from goodbuy.models.snapshot import SECTION_REGISTRY, CrossSectionData, EnterpriseSections, ProfessionalSections
from goodbuy.models.validation import SectionCompleteness, TierCheckResult


def _has_duplicates(ranks: Iterable[int | None]) -> bool:
    counts = Counter(r for r in ranks if r is not None)
    return any(c > 1 for c in counts.values())


def validate_enterprise_tier(enterprise: EnterpriseSections) -> TierCheckResult:
    """Enterpriseティアのフィールド間整合性をチェックする。未回答の項目はスキップする。"""
    errors: list[str] = []
    scenarios = enterprise.strategic_scenario_planning
    projections = enterprise.multi_year_projections
    optimization = enterprise.financial_optimization
    scalability = enterprise.operational_scalability
    drivers = enterprise.strategic_value_drivers

    if scenarios and scenarios.realistic_growth_rate is not None and scenarios.realistic_growth_rate > 100:
        errors.append("Realistic growth rate cannot exceed 100%")

    if (
        projections
        and projections.projected_gross_margin_year5 is not None
        and projections.current_gross_margin is not None
        and projections.projected_gross_margin_year5 < projections.current_gross_margin - 20
    ):
        errors.append("Projected gross margin decline exceeds reasonable limits")

    if scenarios and scenarios.conservative_scenario and scenarios.aggressive_scenario:
        conservative = scenarios.conservative_scenario.revenue_impact_percentage
        aggressive = scenarios.aggressive_scenario.revenue_impact_percentage
        if conservative is not None and aggressive is not None and conservative > aggressive:
            errors.append("Conservative scenario returns cannot exceed aggressive scenario returns")

    if optimization:
        if optimization.working_capital_percentage is not None and optimization.working_capital_percentage > 50:
            errors.append("Working capital percentage exceeds industry norms")
        if optimization.debt_to_equity_ratio is not None and optimization.debt_to_equity_ratio > 10:
            errors.append("Debt to equity ratio indicates high financial risk")

    if scalability and scalability.process_optimization_opportunities:
        for index, opportunity in enumerate(scalability.process_optimization_opportunities):
            savings = opportunity.annual_savings or 0
            cost = opportunity.implementation_cost or 0
            if savings > 0 and cost > 0 and opportunity.roi is not None:
                calculated = (savings - cost) / cost * 100
                if abs(calculated - opportunity.roi) > 5:
                    errors.append(f"Process optimization ROI calculation mismatch at index {index}")

    if drivers and drivers.competitive_advantages and _has_duplicates(a.rank for a in drivers.competitive_advantages):
        errors.append("Competitive advantages must have unique rankings")

    if (
        scenarios
        and scenarios.exit_strategy_preferences
        and _has_duplicates(e.rank for e in scenarios.exit_strategy_preferences)
    ):
        errors.append("Exit strategy preferences must have unique rankings")

    return TierCheckResult(tier="enterprise", is_valid=not errors, errors=errors)


def validate_professional_questionnaire(professional: ProfessionalSections) -> TierCheckResult:
    """Professionalティアのフィールド間整合性をチェックする。"""
    errors: list[str] = []
    financial = professional.financial_performance
    customer = professional.customer_risk_analysis
    operational = professional.operational_strategic

    if financial:
        revenues = [financial.revenue_year1, financial.revenue_year2, financial.revenue_year3]
        if all(r is not None for r in revenues) and not any(r > 0 for r in revenues[1:]):
            errors.append("Please provide realistic revenue progression over the 3-year period")

    if (
        customer
        and customer.top5_customer_revenue is not None
        and customer.largest_customer_revenue is not None
        and customer.top5_customer_revenue < customer.largest_customer_revenue
    ):
        errors.append("Top 5 customer revenue must be at least as large as the largest customer revenue")

    if (
        customer
        and operational
        and customer.customer_concentration_risk == "high"
        and operational.owner_time_commitment is not None
        and operational.owner_time_commitment < 20
    ):
        errors.append("Business dependencies should be consistent across sections")

    return TierCheckResult(tier="professional", is_valid=not errors, errors=errors)


def summarize_sections(data: CrossSectionData) -> list[SectionCompleteness]:
    """全10セクションについて回答済みフィールド数を集計する。"""
    summaries: list[SectionCompleteness] = []
    for section_id, (tier_attr, section_attr, display_name) in SECTION_REGISTRY.items():
        tier_model = ProfessionalSections if tier_attr == "professional" else EnterpriseSections
        section_type = tier_model.model_fields[section_attr].annotation
        # "X | None" から X を取り出す
        section_cls = next(a for a in get_args(section_type) if a is not type(None))
        section = data.get_section(section_id)
        answered = 0 if section is None else sum(1 for v in section.model_dump().values() if v is not None)
        summaries.append(
            SectionCompleteness(
                section_id=section_id,
                section_name=display_name,
                present=section is not None,
                field_count=answered,
                total_fields=len(section_cls.model_fields),
            )
        )
    return summaries
