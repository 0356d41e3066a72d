"""Root settings model.

Precedence, highest first: constructor arguments, CLOSER_* environment
variables (nested with "__", e.g. CLOSER_CONTROL__LOCK_TTL_SECONDS), the
merged TOML layers installed with set_toml_config, then model defaults.
"""

from typing import Any, Literal

from pydantic import Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from closer.config.models.api import APIConfig
from closer.config.models.control import (
    ClassificationConfig,
    ControlConfig,
    GuardConfig,
    ProgressConfig,
    RateLimitConfig,
    SummaryConfig,
)
from closer.config.models.observability import ObservabilityConfig
from closer.config.models.providers import ProvidersConfig
from closer.config.models.storage import StorageConfig

_toml_layers: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Install the merged TOML document that later Settings() calls read."""
    global _toml_layers
    _toml_layers = dict(config)


class TomlLayersSource(PydanticBaseSettingsSource):
    """Serves the installed TOML document as a settings source."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return _toml_layers.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in _toml_layers.items() if k in self.settings_cls.model_fields}


class Settings(BaseSettings):
    """Closer configuration, one nested model per section of default.toml."""

    model_config = SettingsConfigDict(
        env_prefix="CLOSER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "closer"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    api: APIConfig = Field(default_factory=APIConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    control: ControlConfig = Field(
        default_factory=ControlConfig,
        description="Pause/suppress flags, conversation lock and bulk suppression",
    )
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    guard: GuardConfig = Field(default_factory=GuardConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    providers: ProvidersConfig = Field(
        default_factory=ProvidersConfig,
        description="Model routing per call site",
    )
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, TomlLayersSource(settings_cls)
