"""GoodBuy検証サーバーのコマンドラインエントリポイント。"""

if __name__ == "__main__":
    import logging

    import uvicorn

    from goodbuy.config import ServerConfig
    from goodbuy.server import create_server

    config = ServerConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp = create_server(config)
    app = mcp.http_app(transport="streamable-http")
    uvicorn.run(app, host=config.host, port=config.port)
