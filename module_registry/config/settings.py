"""
Settings
Configuration management for the module registry.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file
load_dotenv()


MODE_ON_DEMAND = "on-demand"
MODE_PRECOMPUTED = "precomputed"
MODES = (MODE_ON_DEMAND, MODE_PRECOMPUTED)

DEFAULT_API_BASE = "/api/modules/v1"
DEFAULT_NAMESPACE = "coder"


def _optional_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    return Path(value).expanduser() if value else None


@dataclass
class Config:
    """Server configuration."""
    environment: str = "development"
    log_level: str = "DEBUG"
    mode: str = MODE_ON_DEMAND
    repo_path: Path = Path(".")
    repo_url: Optional[str] = None
    assets_dir: Path = Path("assets")
    host: str = "0.0.0.0"
    port: int = 8080
    namespace: str = DEFAULT_NAMESPACE
    api_base_path: str = DEFAULT_API_BASE
    static_dir: Optional[Path] = None
    tls_certfile: Optional[Path] = None
    tls_keyfile: Optional[Path] = None
    
    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(f"Unknown registry mode '{self.mode}', expected one of {', '.join(MODES)}")
        self.api_base_path = "/" + self.api_base_path.strip("/")
    
    @property
    def is_production(self) -> bool:
        return self.environment == "production"
    
    @property
    def is_precomputed(self) -> bool:
        return self.mode == MODE_PRECOMPUTED
    
    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_certfile and self.tls_keyfile)


class ConfigManager:
    """Configuration manager - loads and provides config."""
    
    _instance: Optional["ConfigManager"] = None
    
    def __init__(self):
        self._config: Optional[Config] = None
    
    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance
    
    def load(self, **overrides) -> Config:
        """
        Load configuration from environment.
        
        Keyword overrides (typically CLI flags) win over environment values;
        ``None`` overrides are ignored.
        """
        env = os.getenv("ENVIRONMENT", "development")
        values = dict(
            environment=env,
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env != "production" else "INFO"),
            mode=os.getenv("REGISTRY_MODE", MODE_ON_DEMAND),
            repo_path=Path(os.getenv("REGISTRY_REPO_PATH", ".")).expanduser(),
            repo_url=os.getenv("REGISTRY_REPO_URL") or None,
            assets_dir=Path(os.getenv("REGISTRY_ASSETS_DIR", "assets")).expanduser(),
            host=os.getenv("REGISTRY_HOST", "0.0.0.0"),
            port=int(os.getenv("REGISTRY_PORT", "8080")),
            namespace=os.getenv("REGISTRY_NAMESPACE", DEFAULT_NAMESPACE),
            api_base_path=os.getenv("REGISTRY_API_BASE", DEFAULT_API_BASE),
            static_dir=_optional_path("REGISTRY_STATIC_DIR"),
            tls_certfile=_optional_path("REGISTRY_TLS_CERT"),
            tls_keyfile=_optional_path("REGISTRY_TLS_KEY"),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        self._config = Config(**values)
        return self._config
    
    def get(self) -> Config:
        """Get current configuration."""
        if self._config is None:
            # Create default config if not loaded
            self._config = Config()
        return self._config
