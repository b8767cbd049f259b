"""Run the gateway with uvicorn: ``python -m api_server``."""

import uvicorn

from .config import GatewayConfig


def main():
    config = GatewayConfig.from_env()
    uvicorn.run("api_server.main:app", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
