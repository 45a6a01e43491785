"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- Sample HTML pages and record data
- A scripted LLM client standing in for Gemini
- Temporary directories
- A fixed reference date
"""

import json
import os
import tempfile
import threading
from datetime import date
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest

# Keep tests offline and independent of the developer's environment
os.environ["GEMINI_API_KEY"] = ""
for _name in ("GEMINI_MODEL", "DEDUP_THRESHOLD", "BATCH_CONCURRENCY"):
    os.environ.pop(_name, None)

from scholarship_ingest.llm.client import LLMClient  # noqa: E402
from scholarship_ingest.shared.errors import LLMError  # noqa: E402


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return project_root / "config" / "settings.yaml"


@pytest.fixture
def today() -> date:
    """Fixed reference date for deadline resolution."""
    return date(2026, 10, 18)


# ─────────────────────────────────────────────────────────────────────────────
# Scripted LLM
# ─────────────────────────────────────────────────────────────────────────────


class ScriptedLLM(LLMClient):
    """
    LLM client that replays scripted answers.

    Each call consumes the next scripted response, then falls back to
    ``default``. A response may be a string, a JSON-serializable value,
    an exception instance (raised) or a callable of (system, user).
    """

    def __init__(self, responses: Optional[list[Any]] = None, default: Any = None):
        self.responses = list(responses or [])
        self.default = default
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    @property
    def provider_name(self) -> str:
        return "scripted"

    @property
    def model_name(self) -> str:
        return "scripted-test"

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        with self._lock:
            self.calls.append((system_prompt, user_prompt))
            response = self.responses.pop(0) if self.responses else self.default

        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(system_prompt, user_prompt)
        if response is None:
            raise LLMError("No scripted response")
        return response if isinstance(response, str) else json.dumps(response)


@pytest.fixture
def make_llm() -> Callable[..., ScriptedLLM]:
    """Factory for scripted LLM clients."""
    return ScriptedLLM


# ─────────────────────────────────────────────────────────────────────────────
# Sample Data Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_url() -> str:
    return "https://www.globalfoundation.org/scholarships/global-leaders"


@pytest.fixture
def sample_html() -> str:
    """Scholarship page with navigation chrome around the content."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Global Leaders Scholarship 2027</title>
        <meta name="description" content="Fully funded master's scholarship for international students.">
        <meta name="keywords" content="scholarship, masters, germany">
        <script>var tracking = "pixel";</script>
        <style>.hero { color: red; }</style>
    </head>
    <body>
        <header>Site Header Banner</header>
        <nav>Home | About | Contact</nav>
        <div class="menu">Menu Entries</div>
        <main>
            <h1>Global Leaders Scholarship</h1>
            <p>Covers tuition   and a monthly stipend
               for students from developing countries.</p>
            <p>Deadline: March 1, 2027</p>
            <a href="/scholarships/global-leaders/apply">Apply here</a>
        </main>
        <aside class="sidebar">Related Scholarships</aside>
        <footer>Footer Links</footer>
    </body>
    </html>
    """


@pytest.fixture
def sample_ai_payload() -> dict:
    """A well-formed model answer for sample_html."""
    return {
        "id": "model-invented-id",
        "name": "Global Leaders Scholarship",
        "country": "Germany",
        "degree": "Master",
        "eligibility": "International students from developing countries with a bachelor's degree.",
        "deadline": "2027-03-01",
        "link": "/scholarships/global-leaders/apply",
        "isFullyFunded": True,
        "amount": "EUR 1,200 per month",
        "provider": "Global Foundation",
    }


@pytest.fixture
def record_factory() -> Callable[..., Any]:
    """Build ScholarshipRecords with sensible defaults."""
    from scholarship_ingest.shared.schemas import ScholarshipRecord

    def _make(**overrides: Any) -> ScholarshipRecord:
        data = {
            "id": "scholarship_000000000000",
            "name": "Sample Scholarship",
            "degree": "Any",
            "eligibility": "Open to all applicants.",
        }
        data.update(overrides)
        return ScholarshipRecord(**data)

    return _make


@pytest.fixture
def duplicate_records(record_factory) -> list:
    """Two listings of the same award plus an unrelated one: [A, A', C]."""
    a = record_factory(
        id="scholarship_aaaaaaaaaaaa",
        name="Global Leaders Scholarship",
        provider="Global Foundation",
        amount="$10,000",
        deadline="2027-03-01",
        link="https://www.globalfoundation.org/apply",
        source="www.globalfoundation.org",
    )
    a_prime = record_factory(
        id="scholarship_bbbbbbbbbbbb",
        name="Global Leaders Scholarship 2027",
        provider="Global Foundation",
        amount="$10,000",
        deadline="2027-03-01",
        country="Germany",
        link="https://www.scholarship-aggregator.com/global-leaders",
        source="www.scholarship-aggregator.com",
    )
    c = record_factory(
        id="scholarship_cccccccccccc",
        name="Arctic Research Fellowship",
        provider="Polar Institute",
        amount="$2,000",
        deadline="2027-06-30",
        link="https://polar.example.com/fellowship",
        source="polar.example.com",
    )
    return [a, a_prime, c]
