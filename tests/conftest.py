"""テスト共通フィクスチャ。"""

from pathlib import Path
from typing import Any

import pytest

from goodbuy.config import ServerConfig
from goodbuy.services.validation import ValidationService
from goodbuy.validators.cross_section import CrossSectionValidator


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def validator() -> CrossSectionValidator:
    """組み込みルールのみのCrossSectionValidator。"""
    return CrossSectionValidator()


@pytest.fixture
def validation_service(config_dir: Path) -> ValidationService:
    """宣言的ルールを読み込んだValidationService。"""
    return ValidationService(config_dir=config_dir)


@pytest.fixture
def server_config(config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(config_dir=config_dir)


@pytest.fixture
def consistent_snapshot() -> dict[str, Any]:
    """全ての組み込みルールを満たすスナップショット。"""
    return {
        "professional": {
            "financialPerformance": {
                "revenueYear1": 1_000_000,
                "revenueYear2": 1_100_000,
                "revenueYear3": 1_200_000,
                "cashFlowYear3": 300_000,
            },
            "customerRiskAnalysis": {
                "customerConcentrationRisk": "high",
                "contractRenewalRate": 90,
                "averageContractLength": 24,
            },
            "competitiveMarket": {
                "technologyAdvantage": "leading",
                "intellectualPropertyValue": "significant",
            },
            "operationalStrategic": {"keyPersonRisk": "medium"},
            "valueEnhancement": {"growthInvestmentCapacity": 500_000},
        },
        "enterprise": {
            "strategicValueDrivers": {"patents": 3, "trademarks": 2, "hasTradeSecrets": True},
            "operationalScalability": {
                "processDocumentationPercentage": 70,
                "technologyInvestmentThreeYear": 250_000,
                "processOptimizationOpportunities": [
                    {"processName": "Procurement", "annualSavings": 50_000, "implementationCost": 20_000, "roi": 150}
                ],
            },
            "financialOptimization": {
                "workingCapitalPercentage": 12,
                "workingCapitalReduction": 10_000,
                "debtServiceRequirements": 100_000,
            },
            "strategicScenarioPlanning": {
                "aggressiveScenario": {"investmentAmount": 800_000},
                "preferredExitTimeline": "three5years",
                "transactionReadiness": "mostly",
                "advisorsEngaged": ["broker", "legal"],
            },
            "multiYearProjections": {
                "baseCase": [
                    {"year": 2025, "revenue": 1_300_000},
                    {"year": 2026, "revenue": 1_420_000},
                    {"year": 2027, "revenue": 1_550_000},
                ],
                "currentGrossMargin": 40,
                "projectedGrossMarginYear5": 45,
            },
        },
    }
