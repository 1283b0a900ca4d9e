from __future__ import annotations
from typing import Optional, Dict, Any, Union, Mapping
from pathlib import Path
from dataclasses import dataclass
from enum import Enum
import os
import yaml
import time
import logging
from contextlib import asynccontextmanager

from ..errors import ConfigurationError
from .prompts import PromptText
from .providers.base import ChatRequest, ModelProvider, ModelReply, StructuredReply
from .providers.openai_sdk import OpenAIProvider

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parents[1] / "config" / "config.yaml"


class Provider(Enum):
    OPENAI = "openai"


@dataclass(frozen=True)
class FlowModelConfig:
    provider: str
    model: str
    params: Dict[str, Any]


class ModelManager:
    """Config-driven model adapter shared by every flow.

    Providers and their credentials are set up once here; flows borrow them
    per call through ``invoke``.
    """

    def __init__(self, config_path: Union[Path, str] = DEFAULT_CONFIG_PATH, environ: Optional[Mapping[str, str]] = None):
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self._environ = os.environ if environ is None else environ
        self._stats: Dict[str, Dict[str, Any]] = {}
        self._providers: Dict[str, ModelProvider] = {}
        for name in self.config["providers"]:
            self._providers[name] = self._create_provider(name)

    def _load_config(self) -> Dict:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")
        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if 'providers' not in config:
            raise ValueError("Config missing 'providers'")
        if 'flows' not in config:
            raise ValueError("Config missing 'flows'")

        for flow_name, flow_cfg in config['flows'].items():
            if 'provider' not in flow_cfg:
                raise ValueError(f"Flow '{flow_name}' missing provider")
            if 'model' not in flow_cfg:
                raise ValueError(f"Flow '{flow_name}' missing model")
            if flow_cfg['provider'] not in config['providers']:
                raise ValueError(f"Flow '{flow_name}' references unknown provider '{flow_cfg['provider']}'")

        return config

    def _create_provider(self, provider_name: str) -> ModelProvider:
        provider_cfg = self.config["providers"][provider_name]
        provider_type = provider_cfg.get("type")
        settings = dict(provider_cfg.get("settings") or {})

        key_env = provider_cfg.get("api_key_env")
        if not key_env:
            raise ConfigurationError(f"Provider '{provider_name}' missing api_key_env")
        api_key = self._environ.get(key_env)
        if not api_key:
            raise ConfigurationError(
                f"Provider '{provider_name}' needs an API key in the {key_env} environment variable"
            )

        if provider_type == Provider.OPENAI.value:
            provider = OpenAIProvider(api_key=api_key, **settings)
        else:
            raise ConfigurationError(f"Unknown provider type: {provider_type}")
        logger.info("initialized provider: %s", provider_name)
        return provider

    def flow_config(self, flow: str) -> FlowModelConfig:
        if flow not in self.config["flows"]:
            raise ValueError(f"Unknown flow: {flow}")
        flow_cfg = self.config["flows"][flow]
        return FlowModelConfig(
            provider=flow_cfg["provider"],
            model=flow_cfg["model"],
            params=dict(flow_cfg.get("params") or {}),
        )

    def get_provider(self, provider_name: str) -> ModelProvider:
        if provider_name not in self._providers:
            raise ValueError(f"Unknown provider: {provider_name}")
        return self._providers[provider_name]

    async def invoke(self, flow: str, prompt: PromptText, output_schema: Optional[Dict[str, Any]] = None) -> ModelReply:
        start_time = time.perf_counter()
        flow_cfg = self.flow_config(flow)

        request = ChatRequest(
            model=flow_cfg.model,
            messages=prompt.messages(),
            params=flow_cfg.params,
            schema=output_schema,
            schema_name=flow,
            stop=prompt.stop_sequences,
        )

        provider = self.get_provider(flow_cfg.provider)
        try:
            reply = await provider.chat(request)
        except Exception:
            self._track_stats(flow, (time.perf_counter() - start_time) * 1000, success=False)
            raise
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self._track_stats(flow, elapsed_ms, success=isinstance(reply, StructuredReply))
        return reply

    def _track_stats(self, flow: str, latency_ms: float, success: bool):
        if flow not in self._stats:
            self._stats[flow] = {
                'total_calls': 0,
                'successful_calls': 0,
                'total_latency_ms': 0
            }

        stats = self._stats[flow]
        stats['total_calls'] += 1
        if success:
            stats['successful_calls'] += 1
            stats['total_latency_ms'] += latency_ms

    def get_stats(self, flow: Optional[str] = None) -> Dict:
        if flow:
            return self._stats.get(flow, {})
        return self._stats

    async def cleanup(self):
        for name, provider in self._providers.items():
            try:
                await provider.cleanup()
                logger.info("Cleaned up provider: %s", name)
            except Exception as e:
                logger.error("Cleanup failed for %s: %s", name, e)

        self._providers.clear()

    @asynccontextmanager
    async def session(self):
        try:
            yield self
        finally:
            await self.cleanup()
