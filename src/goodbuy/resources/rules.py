"""バリデーションルール関連のMCPリソース定義。"""

import yaml
from fastmcp import FastMCP

from goodbuy.services.validation import ValidationService


def register_rule_resources(mcp: FastMCP, validation_service: ValidationService) -> None:
    """ルール関連のMCPリソースを登録する。"""

    @mcp.resource("goodbuy://validation/rules")
    async def validation_rules() -> str:
        """バリデーションルール定義を取得する。

        クロスセクション検証に使用されるルールのメタデータ
        （ID、カテゴリ、重要度、参照セクション）の一覧を返します。
        """
        rules = {"rules": [r.model_dump(mode="json") for r in validation_service.list_rules()]}
        return yaml.dump(rules, allow_unicode=True, default_flow_style=False, sort_keys=False)
