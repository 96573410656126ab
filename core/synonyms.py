"""
Prompt synonym expansion for fuzzy exemplar retrieval.

Maps common prompt phrases (genres, moods, cultural references) to related
terms that should boost matching against the corpus tag vocabulary.

Design:
    - ``SYNONYMS`` is the single phrase/word registry — add entries here,
      no function changes required.
    - Multi-word keys match as substrings of the lower-cased prompt.
    - Single-word keys additionally match whitespace-split prompt tokens.
    - The result is a ``set``: deduplicated, order-irrelevant, and always
      containing the original prompt verbatim.
"""

# ---------------------------------------------------------------------------
# Synonym registry
# ---------------------------------------------------------------------------

SYNONYMS: dict[str, list[str]] = {
    "stranger things": [
        "retro",
        "synthwave",
        "80s",
        "brooding",
        "arpeggio",
        "minor",
        "cinematic",
        "nostalgic",
    ],
    "blade runner": ["noir", "ambient", "cinematic", "pad", "atmospheric", "dark"],
    "interstellar": ["cinematic", "ambient", "epic", "pad", "atmospheric"],
    "trance": ["supersaw", "trancegate", "rave", "euphoric", "uplifting"],
    "techno": ["minimal", "driving", "repetitive", "four-on-the-floor"],
    "ambient": ["pad", "atmospheric", "spacious", "textural", "evolving"],
    "house": ["four-on-the-floor", "groove", "disco", "uplifting"],
    "dnb": ["jungle", "breakbeat", "fast", "intense", "complex"],
    "acid": ["resonant", "filter", "squelchy", "303"],
    "synthwave": ["retro", "80s", "nostalgic", "arpeggio", "minor"],
    "lofi": ["chill", "relaxed", "warm", "nostalgic", "hiphop"],
    "dark": ["minor", "brooding", "gritty", "intense"],
    "euphoric": ["uplifting", "bright", "energetic", "trance"],
    "cinematic": ["atmospheric", "epic", "pad", "orchestral"],
    "moody": ["brooding", "dark", "minor", "atmospheric"],
    "electronic": ["synth", "synthesizer", "digital"],
}


# ---------------------------------------------------------------------------
# Core function
# ---------------------------------------------------------------------------


def expand_prompt(
    prompt: str,
    *,
    synonyms: dict[str, list[str]] | None = None,
) -> set[str]:
    """Expand a free-text prompt with related terms.

    Args:
        prompt: Raw user prompt. May be empty.
        synonyms: Optional override of the synonym registry.

    Returns:
        Set containing *prompt* verbatim plus every related term whose
        trigger phrase occurs in the prompt (case-insensitive). An empty
        prompt yields ``{""}``.
    """
    registry = synonyms if synonyms is not None else SYNONYMS
    lower = prompt.lower()
    expanded: set[str] = {prompt}

    # Phrase matches (substring of the whole prompt)
    for key, related in registry.items():
        if key in lower:
            expanded.update(related)

    # Word matches (exact whitespace-split token)
    for word in lower.split():
        related = registry.get(word)
        if related:
            expanded.update(related)

    return expanded
