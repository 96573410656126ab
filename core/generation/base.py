"""
Generation provider protocol for the pattern-script pipeline.

Defines the contract a model backend must satisfy. This module is pure:
no I/O, no network calls, no side effects. No concrete transport ships
with the project; callers inject any object with a matching ``generate``.

Structural typing: a class with the right method signature satisfies the
protocol without inheriting from it.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

_ROLES = frozenset({"system", "user", "assistant"})


@dataclass(frozen=True)
class Message:
    """A single message in a generation conversation.

    Attributes:
        role: One of ``"system"``, ``"user"``, or ``"assistant"``.
        content: The message text. Must not be empty.
    """

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"role must be one of {sorted(_ROLES)}, got {self.role!r}")
        if not self.content:
            raise ValueError("content must be a non-empty string")


@dataclass(frozen=True)
class GenerationRequest:
    """Messages plus sampling parameters for one model call.

    Attributes:
        messages: Ordered conversation; at least one message.
        temperature: Sampling temperature in ``[0.0, 2.0]``.
        max_tokens: Output cap, positive.
    """

    messages: tuple[Message, ...]
    temperature: float = 0.7
    max_tokens: int = 2048

    def __post_init__(self) -> None:
        if not self.messages:
            raise ValueError("messages must contain at least one Message")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be between 0.0 and 2.0, got {self.temperature}")
        if self.max_tokens < 1:
            raise ValueError(f"max_tokens must be a positive integer, got {self.max_tokens}")


@dataclass(frozen=True)
class GenerationResponse:
    """Raw model reply. ``content`` is handed to the output parser unchanged."""

    content: str
    model: str = "unknown"


@runtime_checkable
class GenerationProvider(Protocol):
    """Protocol for model backends that write pattern scripts."""

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Produce a reply for *request*.

        Raises:
            RuntimeError: If the backend call fails.
        """
        ...
