import os
from types import SimpleNamespace

# The agents client is built at import time and needs a key.
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("GITHUB_TOKEN", "test-github-token")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-0123456789abcdef0123")

import pytest

from Zapp_Builder import functions


class FakeRunner:
    """Stands in for agents.Runner: replies are queued per agent name."""

    def __init__(self):
        self.replies = {}
        self.calls = []

    def reply(self, agent_name, *outputs):
        self.replies.setdefault(agent_name, []).extend(outputs)

    async def run(self, agent, input):
        self.calls.append((agent.name, input))
        queue = self.replies.get(agent.name)
        if not queue:
            raise RuntimeError(f"no reply queued for {agent.name}")
        output = queue.pop(0)
        if isinstance(output, Exception):
            raise output
        return SimpleNamespace(final_output=output)

    def inputs_for(self, agent_name):
        return [data for name, data in self.calls if name == agent_name]


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch):
    # Skip the tiktoken download; counts fall back to the character estimate.
    monkeypatch.setattr(functions.token_manager, "_tokenizer", None)
    monkeypatch.setattr(functions.token_manager, "_tokenizer_loaded", True)


@pytest.fixture
def fake_runner(monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(functions, "Runner", runner)
    return runner
