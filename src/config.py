import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

_ENV_LOADED = False


def _load_env() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    env_path = Path(__file__).resolve().parents[1] / ".env"
    load_dotenv(dotenv_path=env_path)
    _ENV_LOADED = True


def get_env(
    name: str, default: str | None = None, required: bool = False
) -> str | None:
    _load_env()
    value = os.environ.get(name, default)
    if required and (value is None or value == ""):
        raise SystemExit(f"{name} env var is required")
    return value


def _int_env(name: str, default: int) -> int:
    raw = get_env(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = get_env(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    rpc_urls: list[str]
    chain_id: Optional[int] = None
    requests_per_second: float = 5.0
    rpc_timeout: int = 30
    rpc_max_retries: int = 3
    multicall_address: str = MULTICALL3_ADDRESS
    ui_pool_data_provider: Optional[str] = None
    max_hops: int = 3

    def __post_init__(self) -> None:
        if self.requests_per_second <= 0:
            raise ValueError("RPC_REQUESTS_PER_SECOND must be positive")
        if self.rpc_max_retries < 1:
            raise ValueError("RPC_MAX_RETRIES must be >= 1")
        if self.max_hops < 1:
            raise ValueError("MAX_HOPS must be >= 1")


def load_settings(require_rpc: bool = True) -> Settings:
    """Build Settings from the environment (.env at the repo root)."""
    urls_raw = get_env("RPC_URLS", required=require_rpc) or ""
    rpc_urls = [url.strip() for url in urls_raw.split(",") if url.strip()]
    chain_id_raw = get_env("CHAIN_ID")
    return Settings(
        rpc_urls=rpc_urls,
        chain_id=int(chain_id_raw) if chain_id_raw else None,
        requests_per_second=_float_env("RPC_REQUESTS_PER_SECOND", 5.0),
        rpc_timeout=_int_env("RPC_TIMEOUT", 30),
        rpc_max_retries=_int_env("RPC_MAX_RETRIES", 3),
        multicall_address=get_env("MULTICALL_ADDRESS", MULTICALL3_ADDRESS)
        or MULTICALL3_ADDRESS,
        ui_pool_data_provider=get_env("UI_POOL_DATA_PROVIDER") or None,
        max_hops=_int_env("MAX_HOPS", 3),
    )
