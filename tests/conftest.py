import asyncio
import sys
from pathlib import Path

import pytest

# Make the top-level modules importable without an editable install.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeAPIClient:
    """
    Stands in for TranslationAPIClient. Each entry of responses is either
    a string, an exception to raise, or a callable taking the prompt
    """

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default
        self.prompts = []

    async def generate(self, prompt, temperature=None, max_tokens=None):
        self.prompts.append(prompt)
        response = self.responses.pop(0) if self.responses else self.default
        if callable(response) and not isinstance(response, BaseException):
            response = response(prompt)
        if isinstance(response, BaseException):
            raise response
        if response is None:
            raise AssertionError("FakeAPIClient ran out of responses")
        return response

    @property
    def calls(self):
        return len(self.prompts)


def make_page(body: str, title: str = "Landing page") -> str:
    return (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n"
        f"  <meta charset=\"utf-8\">\n  <title>{title}</title>\n"
        "  <style>body { font-family: sans-serif; } .hero > p { margin: 0; }</style>\n"
        "</head>\n<body>\n"
        f"{body}\n"
        "<script>window.dataLayer = []; var label = \"Sign up now\";</script>\n"
        "</body>\n</html>\n"
    )


@pytest.fixture
def fake_client():
    return FakeAPIClient()


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Records every asyncio.sleep delay instead of waiting"""
    recorded = []

    async def fake_sleep(delay, result=None):
        recorded.append(delay)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded
