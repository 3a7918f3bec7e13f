"""Model discovery per provider.

Only the local Ollama server can enumerate its models. Hosted providers get
a pointer to their docs instead, without any network I/O.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .errors import ProviderError, ProviderNotEnabledError
from .providers import ProviderRegistry, get_registry

logger = logging.getLogger(__name__)


class ModelLister:
    def __init__(self, registry: ProviderRegistry | None = None, env: Mapping[str, str] | None = None):
        self.registry = registry or get_registry()
        self.env = env

    def list_models(self, provider: str) -> Dict[str, Any]:
        if not self.registry.is_enabled(provider, self.env):
            raise ProviderNotEnabledError(provider)

        config = self.registry.get_config(provider)
        client = self.registry.get_client(provider, env=self.env)
        if not client.supports_model_listing:
            result: Dict[str, Any] = {"supported": False, "docsUrl": config.docs_url or None}
            if config.models:
                result["models"] = list(config.models)
            return result

        try:
            models = client.list_models()
        except ProviderError as exc:
            # Listing failure is not fatal; the user can still type a model id
            logger.warning("[models] provider=%s listing failed: %s", provider, exc)
            return {"supported": True, "models": [], "error": str(exc) or "Unknown error"}

        logger.info("[models] provider=%s models_found=%d", provider, len(models))
        return {"supported": True, "models": models}
