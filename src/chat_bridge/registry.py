"""Static model registry loaded from models.json."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigError

NATIVE_FAMILY = "native"
COMPATIBLE_FAMILY = "compatible"

# Provider tag whose models go through the native (google-genai) adapter.
# Every other tag is served by the OpenAI-compatible adapter.
NATIVE_PROVIDER = "google"


@dataclass(frozen=True)
class ModelDescriptor:
    """Read-only registry entry describing one selectable model."""

    id: str
    display_name: str
    description: str
    category: str
    provider: str
    native_provider: str = NATIVE_PROVIDER

    @property
    def family(self) -> str:
        return NATIVE_FAMILY if self.provider == self.native_provider else COMPATIBLE_FAMILY

    @property
    def is_native(self) -> bool:
        return self.family == NATIVE_FAMILY


class ModelRegistry:
    """Looks up model descriptors by id.

    Loaded once at startup from models.json (or a custom path). The
    file's "native_provider" key names the provider tag handled by the
    native adapter; it defaults to "google".

    Attributes:
        _models: Model id -> ModelDescriptor, in file order
        _default_model: Model id new chats start with
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        """Initialize ModelRegistry.

        Args:
            config_path: Optional path to a models JSON file. If None, uses the
                        models.json bundled in the package's config directory.

        Raises:
            ConfigError: If the file cannot be loaded, lists no models, or
                         names a default model that is not listed
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config" / "models.json"
        else:
            config_path = Path(config_path)

        try:
            with open(config_path, "r") as f:
                data: Dict[str, Any] = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load model registry: {e}") from e

        native_provider = data.get("native_provider", NATIVE_PROVIDER)

        self._models: Dict[str, ModelDescriptor] = {}
        for entry in data.get("models", []):
            try:
                descriptor = ModelDescriptor(
                    id=entry["id"],
                    display_name=entry.get("name", entry["id"]),
                    description=entry.get("description", ""),
                    category=entry.get("category", "Other"),
                    provider=entry["provider"],
                    native_provider=native_provider,
                )
            except KeyError as e:
                raise ConfigError(f"Model registry entry is missing {e}: {entry!r}") from e
            self._models[descriptor.id] = descriptor

        if not self._models:
            raise ConfigError("Model registry contains no models")

        self._default_model: str = data.get("default_model") or next(iter(self._models))
        if self._default_model not in self._models:
            raise ConfigError(f"Default model '{self._default_model}' is not in the registry")

    @property
    def default_model_id(self) -> str:
        return self._default_model

    def get(self, model_id: str) -> Optional[ModelDescriptor]:
        return self._models.get(model_id)

    def resolve(self, model_id: str) -> ModelDescriptor:
        """Return the descriptor for a model id.

        Raises:
            ConfigError: If the model id is not registered
        """
        descriptor = self._models.get(model_id)
        if descriptor is None:
            raise ConfigError(
                f"Model '{model_id}' not found in registry. "
                f"Available models: {', '.join(sorted(self._models))}"
            )
        return descriptor

    def list_models(self) -> List[ModelDescriptor]:
        return list(self._models.values())

    def by_category(self) -> Dict[str, List[ModelDescriptor]]:
        """Group models by category, keeping registry order within each group."""
        grouped: Dict[str, List[ModelDescriptor]] = {}
        for descriptor in self._models.values():
            grouped.setdefault(descriptor.category, []).append(descriptor)
        return grouped

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)
