from pydantic import BaseModel, Field
from typing import Literal


class LatitudeConfig(BaseModel):
    base_url: str = "https://gateway.latitude.so"
    base_url_env: str = "LATITUDE_BASE_URL"
    api_version: str = "v3"
    api_key_env: str = "LATITUDE_API_KEY"
    project_id: str | None = None
    project_id_env: str = "LATITUDE_PROJECT_ID"
    timeout: float = 60.0


class DeployConfig(BaseModel):
    draft_prefix: str = "deploy"
    individual_probe_threshold: int = Field(default=5, ge=1)
    prompts_dir: str = "prompts"
    extensions: list[str] = [".promptl", ".md", ".txt"]


class ValidationConfig(BaseModel):
    require_config: bool = False


class AppConfig(BaseModel):
    latitude: LatitudeConfig = Field(default_factory=LatitudeConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
