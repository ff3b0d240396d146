"""質問票スナップショット（CrossSectionData）のデータモデル。

Professional / Enterprise 各ティアで保存済みのセクション回答をまとめたもの。
入力途中のスナップショットを扱うため、全てのセクション・全てのフィールドが任意。
Webアプリが保存するcamelCaseのJSONをそのまま検証できるようにエイリアスを付与している。
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high"]


class SnapshotModel(BaseModel):
    """スナップショット系モデルの共通設定。"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# --- Professional tier ---


class FinancialPerformance(SnapshotModel):
    """過去3年間の財務実績。"""

    revenue_year1: float | None = None
    revenue_year2: float | None = None
    revenue_year3: float | None = None
    profit_year1: float | None = None
    profit_year2: float | None = None
    profit_year3: float | None = None
    cash_flow_year1: float | None = None
    cash_flow_year2: float | None = None
    cash_flow_year3: float | None = None
    ebitda_margin: float | None = None
    return_on_equity: float | None = None
    return_on_assets: float | None = None
    total_debt: float | None = None
    working_capital_ratio: float | None = None


class CustomerRiskAnalysis(SnapshotModel):
    """顧客集中度とリテンション。"""

    largest_customer_revenue: float | None = None
    top5_customer_revenue: float | None = None
    customer_concentration_risk: RiskLevel | None = None
    average_customer_tenure: float | None = None
    customer_retention_rate: float | None = None
    customer_satisfaction_score: float | None = None
    average_contract_length: float | None = None
    contract_renewal_rate: float | None = None
    recurring_revenue_percentage: float | None = None
    seasonality_impact: RiskLevel | None = None


class CompetitiveMarket(SnapshotModel):
    """競争環境と市場ポジション。"""

    market_share_percentage: float | None = None
    primary_competitors: list[str] | None = None
    competitive_advantage_strength: Literal["weak", "moderate", "strong", "dominant"] | None = None
    market_growth_rate_annual: float | None = None
    scalability_rating: Literal["limited", "moderate", "high", "exceptional"] | None = None
    barrier_to_entry_level: RiskLevel | None = None
    competitive_threats: list[str] | None = None
    technology_advantage: Literal["lagging", "parity", "leading", "breakthrough"] | None = None
    intellectual_property_value: Literal["none", "limited", "moderate", "significant"] | None = None


class OperationalStrategic(SnapshotModel):
    """オーナー・キーパーソン依存度と戦略的ポジション。"""

    owner_time_commitment: float | None = None
    key_person_risk: Literal["low", "medium", "high", "critical"] | None = None
    management_depth_rating: Literal["shallow", "adequate", "strong", "exceptional"] | None = None
    supplier_concentration_risk: RiskLevel | None = None
    operational_complexity: Literal["simple", "moderate", "complex", "very_complex"] | None = None
    strategic_planning_horizon: Literal["none", "short_term", "medium_term", "long_term"] | None = None
    business_model_adaptability: Literal["rigid", "limited", "flexible", "highly_adaptable"] | None = None


class ValueEnhancement(SnapshotModel):
    """企業価値向上のポテンシャル。"""

    growth_investment_capacity: float | None = None
    market_expansion_opportunities: list[str] | None = None
    improvement_implementation_timeline: (
        Literal["immediate", "3_months", "6_months", "12_months", "longer"] | None
    ) = None
    organizational_change_capacity: Literal["limited", "moderate", "strong", "exceptional"] | None = None
    value_creation_potential: Literal["low", "moderate", "high", "exceptional"] | None = None


class ProfessionalSections(SnapshotModel):
    """Professionalティアの5セクション。"""

    financial_performance: FinancialPerformance | None = None
    customer_risk_analysis: CustomerRiskAnalysis | None = None
    competitive_market: CompetitiveMarket | None = None
    operational_strategic: OperationalStrategic | None = None
    value_enhancement: ValueEnhancement | None = None


# --- Enterprise tier ---


class CompetitiveAdvantage(SnapshotModel):
    type: Literal["cost", "technology", "network", "regulatory", "brand", "switching"] | None = None
    rank: int | None = None
    sustainability: RiskLevel | None = None


class ProcessOptimization(SnapshotModel):
    process_name: str | None = None
    annual_savings: float | None = None
    implementation_cost: float | None = None
    roi: float | None = None


class InvestmentScenario(SnapshotModel):
    investment_amount: float | None = None
    revenue_impact_percentage: float | None = None
    timeline_months: float | None = None
    risk_level: RiskLevel | None = None


class ExitStrategy(SnapshotModel):
    type: Literal["strategic", "financial", "mbo", "esop", "ipo", "family"] | None = None
    rank: int | None = None
    feasibility: RiskLevel | None = None


class MarketExpansion(SnapshotModel):
    market: str | None = None
    opportunity_size: float | None = None
    time_to_entry: float | None = None
    investment_required: float | None = None
    expected_roi: float | None = Field(default=None, alias="expectedROI")


class ValuePriority(SnapshotModel):
    area: str | None = None
    priority: int | None = None
    current_score: float | None = None
    target_score: float | None = None
    investment_required: float | None = None


class YearlyProjection(SnapshotModel):
    year: int | None = None
    revenue: float | None = None
    gross_margin: float | None = None
    net_margin: float | None = None
    cash_flow: float | None = None
    capex: float | None = None


class StrategicOption(SnapshotModel):
    type: Literal["international", "platform", "franchise", "licensing", "rollup"] | None = None
    investment_required: float | None = None
    value_creation_potential: float | None = None
    feasibility_score: float | None = None


class StrategicValueDrivers(SnapshotModel):
    """知的財産・提携・ブランドなどの戦略的価値ドライバー。"""

    patents: int | None = None
    trademarks: int | None = None
    has_trade_secrets: bool | None = None
    has_copyrights: bool | None = None
    ip_portfolio_value: float | None = None
    partnership_revenue_percentage: float | None = None
    partnership_agreements_value: float | None = None
    brand_development_investment: float | None = None
    market_position: Literal["leader", "strong", "niche", "emerging"] | None = None
    customer_database_value: float | None = None
    customer_acquisition_cost: float | None = None
    competitive_advantages: list[CompetitiveAdvantage] | None = None


class OperationalScalability(SnapshotModel):
    """業務の文書化・属人性・技術投資。"""

    process_documentation_percentage: float | None = None
    key_person_dependency_percentage: float | None = None
    owner_knowledge_concentration: float | None = None
    operational_manager_count: int | None = None
    operational_utilization: float | None = None
    technology_investment_three_year: float | None = None
    major_infrastructure_threshold: float | None = None
    infrastructure_investment_required: float | None = None
    process_optimization_opportunities: list[ProcessOptimization] | None = None


class FinancialOptimization(SnapshotModel):
    """税務構造・運転資本・資本構成。"""

    business_entity_type: Literal["sole", "llc", "scorp", "ccorp", "partnership"] | None = None
    tax_optimization_strategies: str | None = None
    working_capital_percentage: float | None = None
    industry_benchmark_working: float | None = None
    working_capital_reduction: float | None = None
    debt_to_equity_ratio: float | None = None
    debt_service_requirements: float | None = None
    debt_capacity_growth: float | None = None
    owner_compensation: float | None = None
    market_rate_compensation: float | None = None
    compensation_adjustment: float | None = None
    one_time_expenses_2024: float | None = None
    one_time_expenses_2023: float | None = None
    one_time_expenses_2022: float | None = None


class StrategicScenarioPlanning(SnapshotModel):
    """成長シナリオとエグジット戦略。"""

    realistic_growth_rate: float | None = None
    market_expansion_opportunities: list[MarketExpansion] | None = None
    conservative_scenario: InvestmentScenario | None = None
    aggressive_scenario: InvestmentScenario | None = None
    acquisition_scenario: InvestmentScenario | None = None
    preferred_exit_timeline: Literal["one2years", "three5years", "five7years", "sevenplus", "none"] | None = None
    exit_strategy_preferences: list[ExitStrategy] | None = None
    transaction_readiness: Literal["ready", "mostly", "some", "significant"] | None = None
    advisors_engaged: list[Literal["broker", "mna", "wealth", "legal", "tax", "none"]] | None = None
    value_maximization_priorities: list[ValuePriority] | None = None


class MultiYearProjections(SnapshotModel):
    """5年間の業績予測とマージン推移。"""

    base_case: list[YearlyProjection] | None = None
    optimistic_case: list[YearlyProjection] | None = None
    conservative_case: list[YearlyProjection] | None = None
    current_gross_margin: float | None = None
    projected_gross_margin_year5: float | None = None
    current_net_margin: float | None = None
    projected_net_margin_year5: float | None = None
    maintenance_capex_percentage: float | None = None
    growth_capex_five_year: float | None = None
    projected_market_position: Literal["leader", "top3", "niche", "consolidated"] | None = None
    competitive_threats: str | None = None
    strategic_options: list[StrategicOption] | None = None


class EnterpriseSections(SnapshotModel):
    """Enterpriseティアの5セクション。"""

    strategic_value_drivers: StrategicValueDrivers | None = None
    operational_scalability: OperationalScalability | None = None
    financial_optimization: FinancialOptimization | None = None
    strategic_scenario_planning: StrategicScenarioPlanning | None = None
    multi_year_projections: MultiYearProjections | None = None


# セクションID -> (ティア属性, セクション属性, 表示名)
SECTION_REGISTRY: dict[str, tuple[str, str, str]] = {
    "financial-performance": ("professional", "financial_performance", "Financial Performance"),
    "customer-risk": ("professional", "customer_risk_analysis", "Customer & Risk Analysis"),
    "competitive-market": ("professional", "competitive_market", "Competitive & Market Position"),
    "operational-strategic": ("professional", "operational_strategic", "Operational & Strategic"),
    "value-enhancement": ("professional", "value_enhancement", "Value Enhancement"),
    "strategic-value-drivers": ("enterprise", "strategic_value_drivers", "Strategic Value Drivers"),
    "operational-scalability": ("enterprise", "operational_scalability", "Operational Scalability"),
    "financial-optimization": ("enterprise", "financial_optimization", "Financial Optimization"),
    "strategic-scenario-planning": ("enterprise", "strategic_scenario_planning", "Strategic Scenario Planning"),
    "multi-year-projections": ("enterprise", "multi_year_projections", "Multi-Year Projections"),
}


class CrossSectionData(SnapshotModel):
    """1件の事業評価に対する、回答済みセクションのスナップショット。"""

    professional: ProfessionalSections | None = None
    enterprise: EnterpriseSections | None = None

    def get_section(self, section_id: str) -> SnapshotModel | None:
        """セクションIDに対応するサブセクションを返す。未回答ならNone。

        Raises:
            KeyError: 未知のセクションIDの場合。
        """
        tier_attr, section_attr, _ = SECTION_REGISTRY[section_id]
        tier = getattr(self, tier_attr)
        if tier is None:
            return None
        return getattr(tier, section_attr)

    @property
    def financial_performance(self) -> FinancialPerformance | None:
        return self.professional.financial_performance if self.professional else None

    @property
    def customer_risk_analysis(self) -> CustomerRiskAnalysis | None:
        return self.professional.customer_risk_analysis if self.professional else None

    @property
    def competitive_market(self) -> CompetitiveMarket | None:
        return self.professional.competitive_market if self.professional else None

    @property
    def operational_strategic(self) -> OperationalStrategic | None:
        return self.professional.operational_strategic if self.professional else None

    @property
    def value_enhancement(self) -> ValueEnhancement | None:
        return self.professional.value_enhancement if self.professional else None

    @property
    def strategic_value_drivers(self) -> StrategicValueDrivers | None:
        return self.enterprise.strategic_value_drivers if self.enterprise else None

    @property
    def operational_scalability(self) -> OperationalScalability | None:
        return self.enterprise.operational_scalability if self.enterprise else None

    @property
    def financial_optimization(self) -> FinancialOptimization | None:
        return self.enterprise.financial_optimization if self.enterprise else None

    @property
    def strategic_scenario_planning(self) -> StrategicScenarioPlanning | None:
        return self.enterprise.strategic_scenario_planning if self.enterprise else None

    @property
    def multi_year_projections(self) -> MultiYearProjections | None:
        return self.enterprise.multi_year_projections if self.enterprise else None
