"""Built-in registry of known models.

Registry ids can be used with ``--model`` or in config defaults without
declaring an alias for them.
"""

from dataclasses import dataclass, field
from typing import Literal

from wavespeed_client.schemas.config import ModelAlias, ProviderType

Capability = Literal["generate", "edit", "sequential"]


@dataclass(frozen=True)
class RegistryModel:
    """Catalogue entry compiled into the client."""

    id: str
    name: str
    provider: ProviderType
    model_name: str
    base_url: str | None = None
    description: str = ""
    docs_url: str | None = None
    capabilities: frozenset[Capability] = field(default_factory=frozenset)
    is_recommended: bool = False

    def as_alias(self) -> ModelAlias:
        """Express this entry as a config alias so it resolves like one."""
        return ModelAlias(
            id=self.id,
            provider=self.provider,
            base_url=self.base_url,
            model_name=self.model_name,
        )


# Ref: https://wavespeed.ai/docs
MODEL_REGISTRY: tuple[RegistryModel, ...] = (
    RegistryModel(
        id="seedream-v4",
        name="Bytedance Seedream V4",
        provider=ProviderType.WAVESPEED,
        model_name="bytedance/seedream-v4",
        description=(
            "State-of-the-art text-to-image model optimized for multi-panel/tiled "
            "posters and design assets."
        ),
        docs_url="https://wavespeed.ai/docs/docs-api/bytedance/bytedance-seedream-v4",
        capabilities=frozenset({"generate", "edit", "sequential"}),
        is_recommended=True,
    ),
    RegistryModel(
        id="seedream-v3.1",
        name="Bytedance Seedream V3.1",
        provider=ProviderType.WAVESPEED,
        model_name="bytedance/seedream-v3.1",
        description="Previous generation high-quality image generation model.",
        docs_url="https://wavespeed.ai/docs/docs-api/bytedance/bytedance-seedream-v3.1",
        capabilities=frozenset({"generate"}),
    ),
)

_REGISTRY_BY_ID: dict[str, RegistryModel] = {model.id: model for model in MODEL_REGISTRY}


def get_registry_model(model_id: str) -> RegistryModel | None:
    """Look up a registry entry by id."""
    return _REGISTRY_BY_ID.get(model_id)


def get_all_registry_models() -> list[RegistryModel]:
    """All registry entries, recommended ones first, in declaration order."""
    return sorted(MODEL_REGISTRY, key=lambda model: not model.is_recommended)
