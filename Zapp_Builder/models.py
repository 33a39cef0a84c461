import json
import tiktoken
from datetime import datetime
from openai import AsyncOpenAI
from agents import Agent, OpenAIChatCompletionsModel, ModelSettings, set_tracing_disabled

from .config import get_settings

settings = get_settings()

# Gemini is reached through its OpenAI-compatible endpoint; traces would go to OpenAI.
set_tracing_disabled(True)

external_client: AsyncOpenAI = AsyncOpenAI(
    api_key=settings.gemini_api_key,
    base_url=settings.gemini_base_url,
)

llm_model: OpenAIChatCompletionsModel = OpenAIChatCompletionsModel(
    model=settings.model,
    openai_client=external_client
)


class TokenManager:
    """Token bookkeeping for model calls (logging only, never blocks)"""

    def __init__(self, max_tokens_per_minute=250000):
        self.max_tokens_per_minute = max_tokens_per_minute
        self.tokens_used = 0
        self.start_time = datetime.now()
        self._tokenizer = None
        self._tokenizer_loaded = False

    @property
    def tokenizer(self):
        if not self._tokenizer_loaded:
            self._tokenizer_loaded = True
            try:
                self._tokenizer = tiktoken.get_encoding("cl100k_base")
            except Exception as e:
                print(f"⚠️ tiktoken encoding unavailable, estimating tokens: {e}")
                self._tokenizer = None
        return self._tokenizer

    def count_tokens(self, data):
        """Count tokens in a prompt (string, dict or agent input list)"""
        if data is None:
            return 0
        if isinstance(data, (dict, list)):
            data = json.dumps(data)
        text = str(data)
        if self.tokenizer is None:
            return max(1, len(text) // 4)
        return len(self.tokenizer.encode(text, disallowed_special=()))

    def add_tokens(self, tokens):
        """Add tokens to the usage counter, resetting it every minute"""
        now = datetime.now()
        if (now - self.start_time).total_seconds() >= 60:
            self.tokens_used = 0
            self.start_time = now
        self.tokens_used += tokens
        if self.tokens_used > self.max_tokens_per_minute:
            print(f"⚠️ Token budget exceeded this minute: {self.tokens_used}/{self.max_tokens_per_minute}")
        else:
            print(f"📊 Tokens used this minute: {self.tokens_used}/{self.max_tokens_per_minute}")


# -------------------
# All Agents Defined Here
# -------------------

from .prompts import (
    initial_project_instructions, planner_instructions, executor_instructions,
    flutter_preview_instructions, rn_preview_instructions, blueprint_instructions
)

precise_model_settings = ModelSettings(
    temperature=0.2,
)

initial_project_agent = Agent(
    name="InitialProject",
    instructions=initial_project_instructions,
    model=llm_model
)

planner_agent = Agent(
    name="ChangePlanner",
    instructions=planner_instructions,
    model=llm_model,
    model_settings=precise_model_settings
)

executor_agent = Agent(
    name="FileExecutor",
    instructions=executor_instructions,
    model=llm_model
)

flutter_preview_agent = Agent(
    name="FlutterPreview",
    instructions=flutter_preview_instructions,
    model=llm_model,
    model_settings=precise_model_settings
)

rn_preview_agent = Agent(
    name="ReactNativePreview",
    instructions=rn_preview_instructions,
    model=llm_model,
    model_settings=precise_model_settings
)

blueprint_agent = Agent(
    name="Blueprint",
    instructions=blueprint_instructions,
    model=llm_model
)
