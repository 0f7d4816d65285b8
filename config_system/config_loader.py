"""
Loading and validation of the analyzer's YAML configuration.

Layout under the config root:

    analyzer.yaml        analyzer: {model, timeout_seconds, log_level, system_message, retry}
    models/<name>.yaml   one chat model definition per file
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_SYSTEM_MESSAGE = (
    "You are an experienced sales coach who reviews sales call transcripts "
    "and scores the salesperson against a fixed rubric."
)

ANALYZER_FILE = "analyzer.yaml"
MODELS_DIR = "models"

M = TypeVar("M", bound=BaseModel)


class ModelConfig(BaseModel):
    """A provider-agnostic LangChain chat model definition."""
    name: str
    provider: str  # e.g. "GoogleGenerativeAI", "OpenAI"
    model_name: str
    module: Optional[str] = None  # overrides langchain_<provider>
    class_name: Optional[str] = None  # overrides Chat<Provider>
    parameters: Dict[str, Any] = Field(default_factory=dict)
    credentials: Dict[str, str] = Field(default_factory=dict)  # "${ENV_VAR}" values are expanded


class RetryConfig(BaseModel):
    """Caller-side retry policy for rate-limited requests."""
    max_retries: int = Field(default=1, ge=1)  # total attempts
    initial_delay: float = Field(default=1.0, ge=0)
    exponential_base: float = Field(default=2.0, ge=1)
    use_header_reset: bool = True


class AnalyzerSettings(BaseModel):
    model: str
    timeout_seconds: float = Field(default=120.0, gt=0)
    log_level: str = "INFO"
    system_message: str = DEFAULT_SYSTEM_MESSAGE
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Unsupported log level: {value}")
        return level


class ConfigValidationError(Exception):
    """Raised when a configuration file is missing or invalid."""


def _read_mapping(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigValidationError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigValidationError(f"Expected a mapping at the top of {path}")
    return data


def _build(model_cls: Type[M], data: Dict[str, Any], path: Path) -> M:
    try:
        return model_cls(**data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid {model_cls.__name__} in {path}: {e}") from e


class ConfigLoader:
    """Reads analyzer settings and model definitions from a config root."""

    def __init__(self, config_root: str = "./config"):
        self.config_root = Path(config_root)
        self.models_dir = self.config_root / MODELS_DIR
        self._model_configs: Dict[str, ModelConfig] = {}

    def validate_config_structure(self) -> bool:
        if not self.list_available_models():
            raise ConfigValidationError(f"No model configuration files found in {self.models_dir}")
        if not (self.config_root / ANALYZER_FILE).is_file():
            raise ConfigValidationError(f"Analyzer config not found: {self.config_root / ANALYZER_FILE}")
        return True

    def list_available_models(self) -> List[str]:
        if not self.models_dir.is_dir():
            return []
        return sorted(path.stem for path in self.models_dir.glob("*.yaml"))

    def load_model_config(self, model_name: str) -> ModelConfig:
        """Load models/<model_name>.yaml; results are cached per loader."""
        cached = self._model_configs.get(model_name)
        if cached is not None:
            return cached

        path = self.models_dir / f"{model_name}.yaml"
        if not path.is_file():
            raise ConfigValidationError(
                f"Unknown model '{model_name}'. Available models: {self.list_available_models()}"
            )
        model_config = _build(ModelConfig, _read_mapping(path), path)
        self._model_configs[model_name] = model_config
        return model_config

    def load_analyzer_settings(self) -> AnalyzerSettings:
        path = self.config_root / ANALYZER_FILE
        data = _read_mapping(path)
        if "analyzer" not in data:
            raise ConfigValidationError(f"{path} must have an 'analyzer' section")
        return _build(AnalyzerSettings, data["analyzer"] or {}, path)

    def validate_all_configs(self) -> bool:
        """
        Check the whole config tree.

        Every model file must parse, analyzer.yaml must parse, and the model
        it references must exist. Raises ConfigValidationError on the first problem.
        """
        self.validate_config_structure()
        models = self.list_available_models()
        for model_name in models:
            self.load_model_config(model_name)

        settings = self.load_analyzer_settings()
        if settings.model not in models:
            raise ConfigValidationError(
                f"Analyzer references model '{settings.model}' which has no config. "
                f"Available models: {models}"
            )
        return True


def validate_config(config_root: str = "./config") -> bool:
    return ConfigLoader(config_root).validate_all_configs()
