"""AI factory for chain reaction bots.

All bot creation goes through this factory so the CLI soak tool and tests
construct players the same way.

Usage:
    from chainreaction.ai.factory import AIFactory
    from chainreaction.models import AIConfig, AIType

    ai = AIFactory.create(AIType.HEURISTIC, player_id=0, config=AIConfig(rng_seed=7))

    # Register a custom implementation
    AIFactory.register("greedy_corner", GreedyCornerAI)
    ai = AIFactory.create_by_name("greedy_corner", player_id=1)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional, Type

from ..models import AIConfig, AIType

if TYPE_CHECKING:
    from .base import BaseAI

logger = logging.getLogger(__name__)


class AIFactory:
    """Factory for creating AI instances.

    Built-in types are resolved through ``AIType``; custom implementations
    are registered at runtime under a string identifier.
    """

    # Maps string identifiers to callables that create AI instances
    _custom_registry: Dict[str, Callable[..., "BaseAI"]] = {}

    @classmethod
    def register(
        cls,
        identifier: str,
        constructor: Callable[..., "BaseAI"],
    ) -> None:
        """Register a custom AI implementation.

        Args:
            identifier: Unique string identifier for the AI type
            constructor: Callable accepting ``(player_id, config)``.
        """
        if identifier in cls._custom_registry:
            logger.warning("Overwriting existing custom AI: %s", identifier)
        cls._custom_registry[identifier] = constructor
        logger.debug("Registered custom AI: %s", identifier)

    @classmethod
    def unregister(cls, identifier: str) -> bool:
        """Remove a custom AI; returns False if it was not registered."""
        if identifier in cls._custom_registry:
            del cls._custom_registry[identifier]
            logger.debug("Unregistered custom AI: %s", identifier)
            return True
        return False

    @classmethod
    def list_registered(cls) -> Dict[str, str]:
        """Map every available identifier to a short description."""
        result = {}
        for ai_type in AIType:
            result[ai_type.value] = f"Built-in: {ai_type.name}"
        for identifier, constructor in cls._custom_registry.items():
            doc = getattr(constructor, "__doc__", None) or "Custom AI"
            result[identifier] = f"Custom: {doc.splitlines()[0]}"
        return result

    @classmethod
    def _get_ai_class(cls, ai_type: AIType) -> Type["BaseAI"]:
        # Lazy imports keep chainreaction.models free of engine imports.
        if ai_type == AIType.RANDOM:
            from .random_ai import RandomAI
            return RandomAI
        if ai_type == AIType.HEURISTIC:
            from .heuristic_ai import HeuristicAI
            return HeuristicAI
        raise ValueError(f"Unsupported AI type: {ai_type}")

    @classmethod
    def create(
        cls,
        ai_type: AIType,
        player_id: int,
        config: Optional[AIConfig] = None,
    ) -> "BaseAI":
        """Create a built-in AI.

        Raises:
            ValueError: If the AI type is not supported
        """
        ai_class = cls._get_ai_class(AIType(ai_type))
        return ai_class(player_id, config or AIConfig())

    @classmethod
    def create_by_name(
        cls,
        identifier: str,
        player_id: int,
        config: Optional[AIConfig] = None,
    ) -> "BaseAI":
        """Create an AI by identifier, checking custom registrations first.

        Raises:
            ValueError: If the identifier is neither registered nor built in
        """
        constructor = cls._custom_registry.get(identifier)
        if constructor is not None:
            return constructor(player_id, config or AIConfig())
        try:
            ai_type = AIType(identifier)
        except ValueError:
            raise ValueError(f"Unknown AI identifier: {identifier}") from None
        return cls.create(ai_type, player_id, config)
