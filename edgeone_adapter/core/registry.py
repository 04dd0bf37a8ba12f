"""Model registry mapping public model ids to upstream model ids.

The registry is built once when the application starts and handed to the
routes through ``app.state``; nothing mutates it afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ..types import ModelDescriptor
from .exceptions import UnknownModelError

MODEL_CREATED_AT = 1704067200
MODEL_OWNER = "deepseek"

DEFAULT_MODEL_MAPPING: Mapping[str, str] = MappingProxyType(
    {
        "deepseek-reasoner": "DeepSeek-R1",
        "deepseek-chat": "DeepSeek-V3",
    }
)
DEFAULT_ADVERTISED_MODELS: tuple[str, ...] = ("deepseek-reasoner", "deepseek-chat")


def build_model_descriptor(model_id: str, owned_by: str = MODEL_OWNER) -> ModelDescriptor:
    """Build the ``/v1/models`` entry for a public model id."""
    return {
        "id": model_id,
        "object": "model",
        "created": MODEL_CREATED_AT,
        "owned_by": owned_by,
        "permission": [],
        "root": model_id,
        "parent": None,
    }


@dataclass(frozen=True)
class ModelRegistry:
    """Immutable lookup of public model ids.

    The advertised listing is kept apart from the mapping so upstream-only
    aliases can be resolvable without being listed.
    """

    mapping: Mapping[str, str] = field(default_factory=lambda: DEFAULT_MODEL_MAPPING)
    advertised: tuple[str, ...] = DEFAULT_ADVERTISED_MODELS

    def __post_init__(self) -> None:
        object.__setattr__(self, "mapping", MappingProxyType(dict(self.mapping)))
        object.__setattr__(self, "advertised", tuple(self.advertised))

    def __contains__(self, model_id: object) -> bool:
        return isinstance(model_id, str) and model_id in self.mapping

    def model_ids(self) -> list[str]:
        """Known public model ids, in table order."""
        return list(self.mapping.keys())

    def get(self, model_id: str) -> Optional[str]:
        return self.mapping.get(model_id)

    def resolve(self, model_id: str) -> str:
        """Return the upstream model id for a public one.

        Raises:
            UnknownModelError: If the id is not in the table.
        """
        upstream_id = self.get(model_id) if isinstance(model_id, str) else None
        if upstream_id is None:
            raise UnknownModelError(str(model_id), self.model_ids())
        return upstream_id

    def list_advertised(self) -> list[ModelDescriptor]:
        return [build_model_descriptor(model_id) for model_id in self.advertised]


def build_registry(
    mapping: Optional[Mapping[str, str]] = None,
    advertised: Optional[Iterable[str]] = None,
) -> ModelRegistry:
    """Create a registry, falling back to the built-in DeepSeek table."""
    return ModelRegistry(
        mapping=mapping if mapping is not None else DEFAULT_MODEL_MAPPING,
        advertised=tuple(advertised) if advertised is not None else DEFAULT_ADVERTISED_MODELS,
    )
