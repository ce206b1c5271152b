"""
Gateway and application configuration
"""

import os
import re
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, ConfigDict

DEFAULT_BASE_URL = "https://flowengine.cloud"

class GatewaySettings(BaseModel):
    """Connection settings for the FlowEngine LiteLLM gateway"""
    base_url: str = Field(DEFAULT_BASE_URL, description="Gateway origin, without trailing slash")
    models_path: str = Field("/api/v1/litellm/models", description="Model listing endpoint path")
    chat_base_path: str = Field("/api/v1/litellm/v1", description="OpenAI-compatible API root path")
    timeout: float = Field(60.0, gt=0, description="Request timeout in seconds")

    model_config = ConfigDict(extra="forbid")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the gateway origin and strip trailing slashes"""
        if not re.match(r'^https?://', v):
            raise ValueError("Base URL must start with http:// or https://")
        return v.rstrip('/')

    @field_validator('models_path', 'chat_base_path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Normalize endpoint paths to a single leading slash"""
        return '/' + v.strip('/')

    @property
    def models_url(self) -> str:
        return f"{self.base_url}{self.models_path}"

    @property
    def chat_base_url(self) -> str:
        return f"{self.base_url}{self.chat_base_path}"

    @property
    def chat_completions_url(self) -> str:
        return f"{self.chat_base_url}/chat/completions"

class AppConfig(BaseModel):
    """Application configuration"""
    version: str = Field("1.0.0", description="Application version")
    debug: bool = Field(False, description="Debug mode flag")
    api_version: str = Field("v1", description="API version")
    log_level: str = Field("INFO", description="Logging level")
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)

    model_config = ConfigDict(extra="forbid")

    @field_validator('version')
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate semantic version format"""
        if not re.match(r'^\d+\.\d+\.\d+$', v):
            raise ValueError("Version must use semantic format (e.g., 1.2.3)")
        return v

    @field_validator('api_version')
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        """Validate the API version used as the route prefix"""
        if not re.match(r'^v\d+$', v):
            raise ValueError("API version must look like v1, v2, ...")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level. Valid options: {', '.join(valid_levels)}")
        return v

def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Build the application configuration from the environment.

    Values from ``env_file`` (or a ``.env`` in the working directory) are
    loaded first without overriding variables that are already set.

    Args:
        env_file: Optional path to a dotenv file

    Returns:
        Validated application configuration
    """
    load_dotenv(env_file)

    gateway = {}
    if os.getenv("FLOWENGINE_BASE_URL"):
        gateway["base_url"] = os.environ["FLOWENGINE_BASE_URL"]
    if os.getenv("FLOWENGINE_TIMEOUT"):
        gateway["timeout"] = float(os.environ["FLOWENGINE_TIMEOUT"])

    app = {}
    if os.getenv("FLOWENGINE_API_VERSION"):
        app["api_version"] = os.environ["FLOWENGINE_API_VERSION"]
    if os.getenv("FLOWENGINE_LOG_LEVEL"):
        app["log_level"] = os.environ["FLOWENGINE_LOG_LEVEL"]
    if os.getenv("FLOWENGINE_DEBUG"):
        app["debug"] = os.environ["FLOWENGINE_DEBUG"].lower() in ("1", "true", "yes")

    return AppConfig(gateway=GatewaySettings(**gateway), **app)
