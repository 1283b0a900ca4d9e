"""
Startup wiring: config, credentials, prompts, catalog and runner, built once.

``create_runner`` is what a server process (or a script) calls at start; every
configuration problem surfaces here instead of on the first request.
"""

from __future__ import annotations
from pathlib import Path
from typing import Mapping, Optional, Union
import os
import logging

from .errors import ConfigurationError
from .flows.catalog import FlowCatalog, build_default_catalog
from .flows.engine import FlowRunner
from .flows.types import InvocationPolicy
from .models.manager import DEFAULT_CONFIG_PATH, ModelManager
from .models.prompts import PromptManager

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).parent / "prompts"


def _check_routing(catalog: FlowCatalog, manager: ModelManager) -> None:
    missing = [name for name in catalog.names() if name not in manager.config["flows"]]
    if missing:
        raise ConfigurationError(f"No model configured for flow(s): {', '.join(missing)}")


def create_runner(
    config_path: Optional[Union[Path, str]] = None,
    prompts_dir: Optional[Union[Path, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FlowRunner:
    env = os.environ if environ is None else environ
    config_path = Path(config_path or env.get("SAFETYFLOWS_CONFIG") or DEFAULT_CONFIG_PATH)
    prompts_dir = Path(prompts_dir or env.get("SAFETYFLOWS_PROMPTS_DIR") or DEFAULT_PROMPTS_DIR)

    manager = ModelManager(config_path, environ=env)
    catalog = build_default_catalog(PromptManager(prompts_dir))
    _check_routing(catalog, manager)
    policy = InvocationPolicy.from_config(manager.config.get("invocation"))

    logger.info("Flow runner ready: %s", ", ".join(catalog.names()))
    return FlowRunner(catalog, manager, policy)
