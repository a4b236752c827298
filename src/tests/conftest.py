# conftest.py

import asyncio
import random

import pytest

from pulau_pal.agents.response_pipeline import ResponsePipeline
from pulau_pal.core.streaming import Scheduler
from pulau_pal.models.schemas import Homestay
from pulau_pal.services.knowledge_service import KnowledgeService


class FakeScheduler(Scheduler):
    """Records requested delays; optional hook runs after the n-th sleep"""

    def __init__(self, after_sleep=None):
        self.delays = []
        self.after_sleep = after_sleep

    async def sleep(self, delay):
        self.delays.append(delay)
        if self.after_sleep is not None:
            self.after_sleep(len(self.delays))
        await asyncio.sleep(0)


class FakeLLMClient:
    """Stands in for GeminiClient; replays queued answers or errors"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def is_configured(self):
        return True

    def generate_content(self, prompt, generation_config=None, safety_settings=None):
        self.calls.append({
            "prompt": prompt,
            "generation_config": generation_config,
            "safety_settings": safety_settings,
        })
        outcome = self.outcomes.pop(0) if self.outcomes else "Default answer."
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeHomestayClient:
    def __init__(self, homestays=None, error=None):
        self.homestays = homestays or []
        self.error = error
        self.languages = []

    async def get_all_homestays(self, language="en"):
        self.languages.append(language)
        if self.error is not None:
            raise self.error
        return list(self.homestays)


def make_homestay(id, title, price=350000, max_guests=4, description="A quiet stay by the beach"):
    return Homestay(id=id, title=title, description=description, base_price=price,
                    location="Untung Jawa", max_guests=max_guests)


def build_pipeline(llm=None, homestays=None, homestay_error=None, seed=7):
    homestay_client = FakeHomestayClient(homestays, homestay_error)
    knowledge = KnowledgeService(homestay_client)
    pipeline = ResponsePipeline(
        llm or FakeLLMClient(),
        knowledge,
        rng=random.Random(seed),
        generation_config={"temperature": 0.7, "maxOutputTokens": 800, "topP": 0.9, "topK": 40},
    )
    return pipeline, homestay_client


@pytest.fixture
def scheduler():
    return FakeScheduler()
