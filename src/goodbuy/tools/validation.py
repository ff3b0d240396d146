"""クロスセクション検証のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from goodbuy.models.errors import GoodBuyError
from goodbuy.services.validation import ValidationService


def register_validation_tools(mcp: FastMCP, validation_service: ValidationService) -> None:
    """検証関連のMCPツールを登録する。"""

    @mcp.tool()
    async def validate_cross_section(snapshot: dict[str, Any]) -> dict[str, Any]:
        """質問票スナップショットをクロスセクション・ルールで検証する。

        Professional / Enterprise 各セクションの回答の整合性を検証し、
        スコア、重要度別の違反、推奨事項、重大な問題を返します。

        Args:
            snapshot: 質問票スナップショット。
                {"professional": {...}, "enterprise": {...}} 形式。各セクションは任意。
        """
        try:
            result = validation_service.validate(snapshot)
            return result.model_dump(by_alias=True)
        except GoodBuyError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def validate_cross_section_rule(rule_id: str, snapshot: dict[str, Any]) -> dict[str, Any]:
        """単一のバリデーションルールのみを実行する。

        セクション単位で入力中の回答をリアルタイムに検証する用途を想定しています。

        Args:
            rule_id: ルールID（例: "debt-service-coverage"）。
            snapshot: 質問票スナップショット。
        """
        try:
            result = validation_service.validate_rule(rule_id, snapshot)
            return {"ruleId": rule_id, **result.model_dump(by_alias=True)}
        except GoodBuyError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def list_validation_rules(
        category: str | None = None,
        severity: str | None = None,
        sections: list[str] | None = None,
    ) -> dict[str, Any]:
        """登録済みのバリデーションルール一覧を取得する。

        Args:
            category: カテゴリで絞り込む（consistency / business_logic / regulatory / best_practice）。
            severity: 重要度で絞り込む（error / warning / info）。
            sections: いずれかのセクションを参照するルールに絞り込む。
        """
        rules = validation_service.list_rules(category=category, severity=severity, sections=sections)
        return {"rules": [r.model_dump(mode="json") for r in rules], "count": len(rules)}

    @mcp.tool()
    async def check_tier_consistency(snapshot: dict[str, Any]) -> dict[str, Any]:
        """回答済みティアの送信時チェックとセクション回答状況を取得する。

        Args:
            snapshot: 質問票スナップショット。
        """
        try:
            tier_results, sections = validation_service.check_tiers(snapshot)
            return {
                "tiers": [r.model_dump(by_alias=True) for r in tier_results],
                "sections": [s.model_dump(by_alias=True) for s in sections],
            }
        except GoodBuyError as e:
            return {"error": type(e).__name__, "message": str(e)}
