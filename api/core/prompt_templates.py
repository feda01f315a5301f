import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict


@lru_cache(maxsize=8)
def load_prompt_template(name: str) -> Dict[str, Any]:
    """Load a prompt template and its examples from JSON file."""
    template_path = Path(__file__).parent.parent / "prompts" / f"{name}.json"
    with open(template_path, encoding="utf-8") as f:
        return json.load(f)
