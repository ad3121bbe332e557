"""System prompts shipped as ``.txt`` files next to this module."""
from pathlib import Path
import typing as t

PROMPTS_DIR = Path(__file__).resolve().parent


def load_prompt(prompt_name: str, prompts_dir: t.Optional[t.Union[str, Path]] = None) -> str:
    """
    Load a system prompt by name.

    Args:
        prompt_name: File name of the prompt without the ``.txt`` suffix.
        prompts_dir: Directory to look in instead of this package.

    Returns:
        The prompt text.

    Raises:
        FileNotFoundError: If no such prompt exists.
    """
    prompt_file = Path(prompts_dir or PROMPTS_DIR) / f"{prompt_name}.txt"
    if not prompt_file.is_file():
        raise FileNotFoundError(f"Prompt file not found: {prompt_file}")
    return prompt_file.read_text(encoding="utf-8")
