from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any, List, Iterable, FrozenSet
from collections.abc import Mapping
import json
import yaml
import jinja2
from jinja2 import meta
import logging

from ..errors import TemplateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptConfig:
    #immutable prompt template; system text is used verbatim
    name: str
    version: str
    user_template: str
    system: Optional[str] = None
    stop_sequences: Optional[list[str]] = None
    description: Optional[str] = None

    @property
    def ref(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class PromptText:
    user: str
    system: Optional[str] = None
    stop_sequences: Optional[list[str]] = None

    def messages(self) -> List[Dict[str, str]]:
        messages = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        messages.append({"role": "user", "content": self.user})
        return messages


def stringify(value: Any) -> str:
    """Deterministic text form of a substituted value."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, sort_keys=True, ensure_ascii=False)
    return str(value)


class PromptManager:
    def __init__(self, prompts_dir: Path):
        self.prompts_dir = Path(prompts_dir)
        if not self.prompts_dir.exists():
            raise FileNotFoundError(f"Prompts dir not found: {self.prompts_dir}")

        self.jinja_env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
            autoescape=False,
            finalize=stringify,
        )
        self._cache: Dict[str, PromptConfig] = {}

    def load_prompt(self, prompt_ref: str) -> PromptConfig:
        if prompt_ref in self._cache:
            return self._cache[prompt_ref]

        if '@' not in prompt_ref:
            raise ValueError(f"Invalid prompt reference: {prompt_ref}")

        path_parts, version = prompt_ref.rsplit('@', 1)
        prompt_path = self.prompts_dir / path_parts / version
        if not prompt_path.exists():
            raise FileNotFoundError(f"Prompt not found: {prompt_path}")

        config = self._load_config(prompt_path)
        user_template = self._read(prompt_path / "user.j2", required=True)
        system = self._read(prompt_path / "system.txt", required=False)

        prompt_config = PromptConfig(
            name=path_parts,
            version=version,
            user_template=user_template,
            system=system.strip() if system else None,
            stop_sequences=config.get('stop_sequences'),
            description=config.get('description'),
        )

        self._cache[prompt_ref] = prompt_config
        logger.info("Loaded prompt: %s", prompt_ref)
        return prompt_config

    def placeholders(self, prompt_ref: str) -> FrozenSet[str]:
        config = self.load_prompt(prompt_ref)
        try:
            ast = self.jinja_env.parse(config.user_template)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError(f"Prompt {prompt_ref} does not compile: {e}") from e
        return frozenset(meta.find_undeclared_variables(ast))

    def check(self, prompt_ref: str, fields: Iterable[str]) -> None:
        """Fail when the template names a variable that is not an input field."""
        unresolved = sorted(self.placeholders(prompt_ref) - set(fields))
        if unresolved:
            raise TemplateError(
                f"Prompt {prompt_ref} references undefined field(s): {', '.join(unresolved)}"
            )

    def render(self, prompt_ref: str, variables: Dict[str, Any]) -> PromptText:
        return self.render_config(self.load_prompt(prompt_ref), variables)

    def render_config(self, config: PromptConfig, variables: Dict[str, Any]) -> PromptText:
        """Render an already-loaded prompt; neither the cache nor the disk is consulted."""
        prompt_ref = config.ref
        try:
            user = self.jinja_env.from_string(config.user_template).render(**variables)
        except jinja2.UndefinedError as e:
            raise TemplateError(f"Missing required variable in prompt {prompt_ref}: {e}") from e
        except jinja2.TemplateError as e:
            raise TemplateError(f"Failed to render prompt {prompt_ref}: {e}") from e

        return PromptText(user=user.strip(), system=config.system, stop_sequences=config.stop_sequences)

    def _load_config(self, prompt_path: Path) -> dict:
        config_path = prompt_path / "config.yaml"
        if not config_path.exists():
            return {}
        with open(config_path) as f:
            return yaml.safe_load(f) or {}

    def _read(self, path: Path, required: bool) -> Optional[str]:
        if not path.exists():
            if required:
                raise FileNotFoundError(f"Template file not found: {path}")
            return None
        return path.read_text(encoding="utf-8")

    def clear_cache(self):
        self._cache.clear()
        self.jinja_env.cache.clear()
        logger.info("Cleared prompt manager caches")
