import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

RULES_PATH_ENV = "ACTIVITY_RULES_PATH"
DEFAULT_RULES_PATH = Path("rules.yaml")


class RulesValidationError(ValueError):
    """
    Raised when a rules file lacks sections it declares as required.
    """

    def __init__(self, missing_sections: list[str]) -> None:
        self.missing_sections = missing_sections
        super().__init__(
            f"Rules validation failed: missing required sections: {missing_sections}"
        )


def resolve_rules_path(path: Path | str | None = None) -> Path:
    """Explicit path, then $ACTIVITY_RULES_PATH, then ./rules.yaml."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(RULES_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_RULES_PATH


def _strip_markdown_fences(content: str) -> str:
    # Use the first ```yaml block if there is one, else the whole file
    yaml_lines = []
    in_block = False
    found_block = False

    for line in content.splitlines():
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break
        if in_block:
            yaml_lines.append(line)

    return "\n".join(yaml_lines) if found_block else content


def parse_rules(content: str) -> Rules:
    """
    Parse and validate rules text.
    Raises ValueError on invalid YAML or schema.
    Raises RulesValidationError if a required section is absent.
    """
    try:
        data: Any = yaml.safe_load(_strip_markdown_fences(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Rules file must contain a mapping at the top level")

    try:
        rules = Rules.model_validate(data)
    except ValidationError as e:
        # Re-raise with a clear message for the caller/logs
        raise ValueError(f"Rules validation failed:\n{e}") from e

    missing = [s for s in rules.project.required_sections if s not in data]
    if missing:
        raise RulesValidationError(missing)

    return rules


def load_rules(path: Path | str | None = None) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    """
    rules_path = resolve_rules_path(path)
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules file not found at: {rules_path}")

    return parse_rules(rules_path.read_text())
