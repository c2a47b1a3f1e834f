"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache): single instance per process
    - Engine entrypoints have the form "package.module:callable"
    - connection_min_layer <= connection_max_layer

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env support
    - Defaults provided for all settings: works out-of-the-box with no engines bound
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENTRYPOINT_HINT = "expected 'package.module:callable'"


def _check_entrypoint(value: str) -> str:
    module_path, sep, attr = value.partition(":")
    if not sep or not module_path or not attr:
        raise ValueError(f"invalid engine entrypoint '{value}': {_ENTRYPOINT_HINT}")
    return value


class Settings(BaseSettings):
    """Call-setup settings from environment variables (prefix CALLSETUP_)."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CALLSETUP_", case_sensitive=False,
    )

    # Engines
    legacy_engine_name: str = "libtgvoip"
    legacy_engine_version: str = "2.4.4"
    legacy_engine_entrypoint: str | None = None
    pluggable_engine_entrypoints: dict[str, str] = {}
    force_direct_legacy: bool = False

    @field_validator("legacy_engine_entrypoint")
    @classmethod
    def validate_legacy_entrypoint(cls, v: str | None) -> str | None:
        return None if v is None else _check_entrypoint(v)

    @field_validator("pluggable_engine_entrypoints")
    @classmethod
    def validate_pluggable_entrypoints(cls, v: dict[str, str]) -> dict[str, str]:
        for version, entrypoint in v.items():
            if not version.strip():
                raise ValueError("engine version must not be blank")
            _check_entrypoint(entrypoint)
        return v

    # Protocol advertisement
    connection_min_layer: int = 65
    connection_max_layer: int = 92

    @model_validator(mode="after")
    def check_layer_range(self) -> "Settings":
        if self.connection_min_layer > self.connection_max_layer:
            raise ValueError("connection_min_layer must not exceed connection_max_layer")
        return self

    # Platform floor: below min_platform_level only the legacy engine may run
    platform_level: int | None = None
    min_platform_level: int = 19

    # Files
    persistent_state_file: str = "data/voip_persistent_state.json"
    call_log_dir: str = "logs/calls"
    call_log_keep_count: int = 20

    # Debug surface (developer builds only)
    debug_surface_enabled: bool = False

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
