"""
Builds LangChain chat models from model configs.

The provider package is imported lazily, so only the integration actually
configured (langchain-google-genai, langchain-openai, ...) has to be installed.
"""
import importlib
import os
import re
from typing import Any, Dict, Tuple

from langchain_core.language_models import BaseChatModel

from config_system.config_loader import ConfigLoader, ConfigValidationError, ModelConfig

_ENV_REFERENCE = re.compile(r"^\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)\}$")


def _expand_credential(key: str, value: str) -> str:
    match = _ENV_REFERENCE.match(value)
    if not match:
        return value
    env_var = match.group("name")
    resolved = (os.getenv(env_var) or "").strip()
    if not resolved:
        raise ConfigValidationError(f"Environment variable {env_var} not set for credential {key}")
    return resolved


class ModelRegistry:
    """Resolves a ModelConfig to a LangChain chat model class and its arguments."""

    @classmethod
    def resolve_class_path(cls, model_config: ModelConfig) -> Tuple[str, str]:
        """(module, class) to import; defaults to langchain_<provider>.Chat<Provider>."""
        module_name = model_config.module or f"langchain_{model_config.provider.lower()}"
        class_name = model_config.class_name or f"Chat{model_config.provider}"
        return module_name, class_name

    @classmethod
    def build_llm_params(cls, model_config: ModelConfig) -> Dict[str, Any]:
        """Constructor kwargs: model name, then parameters, then expanded credentials."""
        params: Dict[str, Any] = {"model": model_config.model_name, **model_config.parameters}
        for key, value in model_config.credentials.items():
            params[key] = _expand_credential(key, value)
        return params

    @classmethod
    def create_llm(cls, model_config: ModelConfig) -> BaseChatModel:
        module_name, class_name = cls.resolve_class_path(model_config)
        try:
            llm_class = getattr(importlib.import_module(module_name), class_name)
        except ImportError as e:
            raise ConfigValidationError(
                f"Provider '{model_config.provider}' for model '{model_config.name}' is not installed; "
                f"install {module_name.replace('_', '-')} ({e})"
            ) from e
        except AttributeError as e:
            raise ConfigValidationError(f"{module_name} has no chat model class {class_name}") from e

        params = cls.build_llm_params(model_config)
        try:
            return llm_class(**params)
        except Exception as e:
            raise ConfigValidationError(f"Could not construct model '{model_config.name}': {e}") from e


class ModelFactory:
    """Creates chat models by config name."""

    def __init__(self, config_loader: ConfigLoader):
        self.config_loader = config_loader

    def create_llm(self, model_name: str) -> BaseChatModel:
        return ModelRegistry.create_llm(self.config_loader.load_model_config(model_name))
