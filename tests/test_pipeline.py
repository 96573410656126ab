"""
Tests for core/pipeline.py — retrieve, prompt, parse, validate, commit.

A scripted provider replays canned replies and records every request, so
the retry conversation and session commits can be asserted exactly.
"""

from collections.abc import Callable

import pytest

from core.corpus.types import CorpusIndex, StylePriors
from core.generation.base import GenerationProvider, GenerationRequest, GenerationResponse
from core.pipeline import build_generation_messages, run_generation
from core.retrieval import retrieve
from core.session.store import SessionStore
from ingestion.session_backends import InMemorySessionBackend
from conftest import VALID_CODE

TOO_MANY_VOICES = "setcpm(120)\n" + "\n".join(f'$: s("bd").gain(0.{i})' for i in range(7))


def _fenced(code: str) -> str:
    return f"```javascript\n{code}\n```"


class ScriptedProvider:
    """Returns the given replies in order and records each request."""

    def __init__(self, *replies: str) -> None:
        self._replies = list(replies)
        self.requests: list[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        return GenerationResponse(content=self._replies.pop(0), model="scripted")


class FailingProvider:
    def generate(self, request: GenerationRequest) -> GenerationResponse:
        raise RuntimeError("model unavailable")


class TestBuildGenerationMessages:
    def test_system_then_user(self, corpus_index: CorpusIndex) -> None:
        exemplars = retrieve("stranger things", corpus_index)
        messages = build_generation_messages("stranger things", exemplars)
        assert [m.role for m in messages] == ["system", "user"]
        assert "[1] Stranger Things" in messages[1].content
        assert messages[1].content.endswith("## Request\nstranger things")

    def test_no_exemplars_no_references(self) -> None:
        messages = build_generation_messages("dark techno", [])
        assert "## References" not in messages[1].content

    def test_current_code_and_priors(self) -> None:
        priors = StylePriors(summary_bullets=("keep it sparse",))
        messages = build_generation_messages("x", [], priors=priors, current_code="setcpm(80)")
        assert "- keep it sparse" in messages[0].content
        assert "## Current Script" in messages[1].content
        assert "setcpm(80)" in messages[1].content

    def test_blank_prompt_raises(self) -> None:
        with pytest.raises(ValueError):
            build_generation_messages("  ", [])


class TestRunGeneration:
    def test_provider_satisfies_protocol(self) -> None:
        assert isinstance(ScriptedProvider(), GenerationProvider)

    def test_accepted_on_first_attempt(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        provider = ScriptedProvider(_fenced(VALID_CODE))
        outcome = run_generation("stranger things", provider, corpus_index, session_store)

        assert outcome.success
        assert outcome.code == VALID_CODE
        assert len(outcome.attempts) == 1
        assert outcome.attempts[0].accepted
        assert outcome.exemplars[0].entry.id == "stranger-things"
        assert outcome.version_recorded
        assert outcome.error is None
        assert outcome.issues == ()

        session = session_store.state.current_session
        assert session.current_code == VALID_CODE
        assert [m.role for m in session.chat] == ["user", "assistant"]
        assert session.chat[0].content == "stranger things"
        assert session.chat[1].code == VALID_CODE

    def test_new_session_omits_current_code(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        provider = ScriptedProvider(_fenced(VALID_CODE))
        run_generation("ambient", provider, corpus_index, session_store)
        assert "## Current Script" not in provider.requests[0].messages[1].content

    def test_edit_mode_includes_current_code(
        self,
        corpus_index: CorpusIndex,
        memory_backend: InMemorySessionBackend,
        clock: Callable[[], int],
    ) -> None:
        SessionStore(memory_backend, clock=clock).start_new_session("setcpm(64)\n$: s(\"bd\")")
        store = SessionStore(memory_backend, clock=clock)
        assert store.state.mode == "edit"

        provider = ScriptedProvider(_fenced(VALID_CODE))
        run_generation("faster", provider, corpus_index, store)
        user_message = provider.requests[0].messages[1].content
        assert "## Current Script" in user_message
        assert "setcpm(64)" in user_message

    def test_include_current_code_override(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        provider = ScriptedProvider(_fenced(VALID_CODE))
        run_generation("x y", provider, corpus_index, session_store, include_current_code=True)
        assert "## Current Script" in provider.requests[0].messages[1].content

    def test_retry_after_parse_failure(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        provider = ScriptedProvider("Sure! Here is a dreamy song for you.", _fenced(VALID_CODE))
        outcome = run_generation("ambient", provider, corpus_index, session_store)

        assert outcome.success
        assert [a.accepted for a in outcome.attempts] == [False, True]
        retry = provider.requests[1].messages
        assert [m.role for m in retry] == ["system", "user", "assistant", "user"]
        assert retry[2].content == "Sure! Here is a dreamy song for you."
        assert "- no code block found in response" in retry[3].content

    def test_retry_lists_validation_issues(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        provider = ScriptedProvider(_fenced(TOO_MANY_VOICES), _fenced(VALID_CODE))
        run_generation("techno", provider, corpus_index, session_store)
        assert "too many voices (7/6 max)" in provider.requests[1].messages[3].content

    def test_all_attempts_rejected(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        provider = ScriptedProvider("", _fenced(TOO_MANY_VOICES))
        outcome = run_generation("techno", provider, corpus_index, session_store)

        assert not outcome.success
        assert outcome.code == ""
        assert len(outcome.attempts) == 2
        assert outcome.attempts[0].parsed.error == "empty response"
        assert outcome.error is None
        assert outcome.issues == ("too many voices (7/6 max) - simplify to fewer tracks",)
        assert provider.requests[1].messages[2].content == "(empty reply)"

        session = session_store.state.current_session
        assert session.chat == ()
        assert session.versions == ()

    def test_single_attempt(self, corpus_index: CorpusIndex, session_store: SessionStore) -> None:
        provider = ScriptedProvider("no code here")
        outcome = run_generation("x y", provider, corpus_index, session_store, max_attempts=1)
        assert not outcome.success
        assert outcome.error == "no code block found in response"
        assert len(provider.requests) == 1

    def test_without_corpus(self, session_store: SessionStore) -> None:
        provider = ScriptedProvider(_fenced(VALID_CODE))
        outcome = run_generation("ambient", provider, None, session_store)
        assert outcome.success
        assert outcome.exemplars == ()
        assert "## References" not in provider.requests[0].messages[1].content

    def test_unchanged_code_records_no_version(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        session_store.start_new_session(VALID_CODE)
        provider = ScriptedProvider(_fenced(VALID_CODE))
        outcome = run_generation("same again", provider, corpus_index, session_store)
        assert outcome.success
        assert not outcome.version_recorded

    def test_invalid_max_attempts(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        with pytest.raises(ValueError, match="max_attempts must be at least 1"):
            run_generation("x y", ScriptedProvider(), corpus_index, session_store, max_attempts=0)

    def test_provider_errors_propagate(
        self, corpus_index: CorpusIndex, session_store: SessionStore
    ) -> None:
        with pytest.raises(RuntimeError, match="model unavailable"):
            run_generation("x y", FailingProvider(), corpus_index, session_store)
