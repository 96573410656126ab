"""Tests for core/synonyms.py — prompt synonym expansion."""

from core.synonyms import SYNONYMS, expand_prompt


class TestExpandPrompt:
    def test_always_contains_original_prompt(self) -> None:
        prompt = "Something With No Synonyms"
        assert prompt in expand_prompt(prompt)

    def test_unknown_prompt_yields_only_itself(self) -> None:
        assert expand_prompt("banjo polka") == {"banjo polka"}

    def test_empty_prompt(self) -> None:
        assert expand_prompt("") == {""}

    def test_single_word_key(self) -> None:
        result = expand_prompt("techno")
        assert {"minimal", "driving", "repetitive", "four-on-the-floor"} <= result

    def test_phrase_key_matches_as_substring(self) -> None:
        result = expand_prompt("make something like stranger things please")
        assert "synthwave" in result
        assert "arpeggio" in result

    def test_case_insensitive(self) -> None:
        assert "jungle" in expand_prompt("DnB")

    def test_original_case_is_preserved(self) -> None:
        assert "Dark Techno" in expand_prompt("Dark Techno")

    def test_multiple_keys_union(self) -> None:
        result = expand_prompt("dark trance")
        assert "brooding" in result
        assert "supersaw" in result

    def test_no_duplicates_for_overlapping_keys(self) -> None:
        # synthwave and stranger things share several related terms
        result = expand_prompt("stranger things synthwave")
        assert isinstance(result, set)
        assert len(result) == len(set(result))

    def test_custom_registry(self) -> None:
        result = expand_prompt("polka time", synonyms={"polka": ["accordion"]})
        assert result == {"polka time", "accordion"}

    def test_registry_has_expected_keys(self) -> None:
        assert "blade runner" in SYNONYMS
        assert "lofi" in SYNONYMS
