from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules


def extract_yaml(content: str) -> str:
    """
    Return the first ```yaml fenced block, or the whole text if there is none.

    Lets rules live inside a markdown document.
    """
    yaml_lines = []
    in_block = False

    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("```yaml"):
            in_block = True
            continue
        if in_block and stripped.startswith("```"):
            return "\n".join(yaml_lines)
        if in_block:
            yaml_lines.append(line)

    if in_block:
        # Unterminated fence: take what followed it
        return "\n".join(yaml_lines)
    return content


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = extract_yaml(f.read())

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Rules file must contain a mapping at the top level")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e
