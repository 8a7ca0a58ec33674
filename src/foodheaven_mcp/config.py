import json
import os
from typing import Literal, Optional

from pydantic import BaseModel, Field


class FirebaseSettings(BaseModel):
    project_id: str = ""
    credentials_path: str = ""  # service account JSON for firebase-admin
    api_key: str = ""  # web API key for the Identity Toolkit REST API
    auth_url: str = "https://identitytoolkit.googleapis.com/v1"
    request_timeout: int = 15


class BackendSettings(BaseModel):
    kind: Literal["firebase", "memory"] = "firebase"
    firebase: FirebaseSettings = Field(default_factory=FirebaseSettings)


class PricingConfig(BaseModel):
    delivery_fee: float = 40.0
    tax_rate: float = 0.05
    currency_symbol: str = "₹"


class StorageConfig(BaseModel):
    state_path: str = "/data/foodheaven_state.json"
    audit_log_path: str = "/data/orders.log"


class FoodHeavenConfig(BaseModel):
    backend: BackendSettings = Field(default_factory=BackendSettings)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    prefers_dark: bool = False


def load_config(path: Optional[str] = None) -> FoodHeavenConfig:
    config_path = path or os.environ.get("CONFIG_PATH", "/config/config.json")
    if not os.path.exists(config_path):
        raise FileNotFoundError(
            f"Config file not found at {config_path}. "
            "Copy config.json.example to the config path and fill in your details."
        )
    with open(config_path) as f:
        data = json.load(f)
    config = FoodHeavenConfig(**data)

    # Environment overrides for container deployments
    state_path = os.environ.get("FOODHEAVEN_STATE_PATH")
    if state_path:
        config.storage.state_path = state_path
    log_path = os.environ.get("LOG_PATH")
    if log_path:
        config.storage.audit_log_path = log_path
    return config
