"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from goodbuy.config import ServerConfig
from goodbuy.resources.rules import register_rule_resources
from goodbuy.services.validation import ValidationService
from goodbuy.tools.validation import register_validation_tools


def create_server(config: ServerConfig | None = None) -> FastMCP:
    """GoodBuy検証サーバーを作成し、ツール・リソースを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("goodbuy")

    # サービス層
    validation_service = ValidationService(
        config_dir=config.config_dir,
        load_declarative_rules=config.load_declarative_rules,
    )

    # MCPインターフェース登録
    register_validation_tools(mcp, validation_service)
    register_rule_resources(mcp, validation_service)

    # ヘルスチェックエンドポイント
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return mcp
