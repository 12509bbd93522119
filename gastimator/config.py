from pydantic_settings import BaseSettings

ALCHEMY_ETHEREUM_BASE_URL = "https://eth-mainnet.g.alchemy.com/v2"


class Settings(BaseSettings):
    alchemy_api_key: str = ""
    eth_rpc_url_override: str = ""
    server_address: str = "0.0.0.0"
    server_port: int = 3000
    rpc_timeout: float = 10.0
    log_level: str = "INFO"

    @property
    def eth_rpc_url(self) -> str:
        if self.eth_rpc_url_override:
            return self.eth_rpc_url_override
        return f"{ALCHEMY_ETHEREUM_BASE_URL}/{self.alchemy_api_key}"

    @property
    def address_with_port(self) -> str:
        return f"{self.server_address}:{self.server_port}"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
