"""
Prompt templates for pattern-script generation.

Pure functions that build system and user prompts. No I/O, no side effects.

The system prompt acts as a **functional contract** between the application
and the model: it defines the output format the parser accepts and the
limits the validator enforces, so a compliant reply passes both. The user
prompt combines the request with the exemplar block and, when editing, the
current script.
"""

from core.config import DEFAULT_VALIDATION_CONFIG, ValidationConfig


def build_system_prompt(
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
    style_hints: str | None = None,
) -> str:
    """Return the system prompt for the pattern-script generator.

    Limits are taken from *config* so the prompt and the validator never
    disagree.

    Args:
        config: Validation limits the reply will be checked against.
        style_hints: Optional output of ``format_style_hints()``, appended
            verbatim as a dedicated section.

    Returns:
        The complete system prompt string.
    """
    tempo_rule = (
        "- The first line MUST be setcpm(N)."
        if config.require_setcpm
        else "- Start with setcpm(N) when the tempo matters."
    )
    prompt = f"""\
You write pattern scripts for a live-coding synthesizer.

## Output Format
- Output exactly one script and nothing else: no prose, no numbered lists.
{tempo_rule}
- Declare every voice on its own line starting with $:
- Keep (), [] and {{}} balanced; keep <> balanced inside each pattern string.

## Limits
- At most {config.max_voices} voices and {config.max_lines} lines.
- At most {config.max_effects_per_voice} effects per voice chain.
- At most {config.max_random_usage} uses of rand, irand, perlin, sometimes or rarely combined.
- delayfeedback at most {config.max_delay_feedback:g}; room at most {config.max_room:g}.
- Only built-in samples: never load sample banks from URLs or localhost."""

    if style_hints:
        prompt += f"\n\n## Style Notes\nPatterns that work well in the reference corpus:\n{style_hints}"

    return prompt


def build_user_prompt(
    request: str,
    exemplar_block: str | None = None,
    current_code: str | None = None,
) -> str:
    """Build the user prompt combining the request with references.

    The prompt structure is:

    1. **References** — numbered exemplars to borrow techniques from (optional).
    2. **Current script** — the script being edited (edit mode only).
    3. **Request** — the user's original prompt.

    Args:
        request: The user's prompt. Must not be empty.
        exemplar_block: Pre-formatted block from ``format_exemplar_block()``.
        current_code: Script to modify; ``None`` for a fresh composition.

    Returns:
        The complete user prompt string.

    Raises:
        ValueError: If request is empty.
    """
    if not request.strip():
        raise ValueError("request must be a non-empty string")

    sections: list[str] = []
    if exemplar_block:
        sections.append(
            "## References\nBorrow techniques from these scripts; do not copy them.\n\n"
            + exemplar_block
        )
    if current_code:
        sections.append(
            "## Current Script\nModify this script to satisfy the request.\n\n" + current_code
        )
    sections.append(f"## Request\n{request}")
    return "\n\n".join(sections)


def build_retry_prompt(error: str | None, issues: tuple[str, ...] = ()) -> str:
    """Build the follow-up message sent after a rejected reply."""
    problems = [error] if error else []
    problems.extend(issues)
    listed = "\n".join(f"- {p}" for p in problems) or "- reply was rejected"
    return f"""\
Your previous reply was rejected:
{listed}

Reply again with one corrected script only."""
