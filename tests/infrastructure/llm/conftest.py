"""Common fixtures for LLM infrastructure tests."""

from collections.abc import Callable

import httpx
import pytest

from personachat.domain.entities import Message, Role

NOW = 1_700_000_000_000


@pytest.fixture
def history() -> list[Message]:
    """System message followed by one exchange and a new question."""
    return [
        Message(role=Role.SYSTEM, content="You are Ada.", timestamp=NOW),
        Message(role=Role.USER, content="Hello", timestamp=NOW),
        Message(role=Role.ASSISTANT, content="Good day.", timestamp=NOW),
        Message(role=Role.USER, content="What is an engine?", timestamp=NOW),
    ]


@pytest.fixture
def sent_requests() -> list[httpx.Request]:
    """Requests seen by the mock transport."""
    return []


@pytest.fixture
def make_client(
    sent_requests: list[httpx.Request],
) -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient answering through a handler."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> httpx.AsyncClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            return handler(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))

    return factory
