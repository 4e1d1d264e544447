"""
Shared pytest fixtures for all tests.
"""
import shutil
import sys
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio

from lsp.session import Session


# =============================================================================
# Constants
# =============================================================================

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FAKE_SERVER = FIXTURES_DIR / "fake_language_server.py"
SAMPLE_PROJECT = FIXTURES_DIR / "sample_project"

# Generous for slow CI machines; tests that exercise timeouts pass their own
TEST_INIT_TIMEOUT = 10.0
TEST_REQUEST_TIMEOUT = 5.0


# =============================================================================
# Workspace
# =============================================================================

@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """A private copy of the sample Rust workspace."""
    target = tmp_path / "sample_project"
    shutil.copytree(SAMPLE_PROJECT, target)
    return target.resolve()


@pytest.fixture
def temp_file(tmp_path: Path) -> Path:
    """Create a temporary source file for testing."""
    file_path = tmp_path / "notes.rs"
    file_path.write_text("fn first() {}\nfn second() {}\n")
    return file_path


# =============================================================================
# Fake language server
# =============================================================================

def fake_server_args(*flags: str) -> list[str]:
    """Arguments that run the scripted language server with the given flags."""
    return [str(FAKE_SERVER), *flags]


@pytest_asyncio.fixture
async def session_factory(sample_project: Path) -> AsyncGenerator[Callable[..., Awaitable[Session]], None]:
    """Start sessions against the fake language server; all are shut down afterwards."""
    started: list[Session] = []

    async def start(
        *flags: str,
        workspace: Path | None = None,
        init_timeout: float = TEST_INIT_TIMEOUT,
        request_timeout: float = TEST_REQUEST_TIMEOUT,
    ) -> Session:
        live = await Session.create(
            sys.executable,
            fake_server_args(*flags),
            workspace or sample_project,
            init_timeout=init_timeout,
            request_timeout=request_timeout,
        )
        started.append(live)
        return live

    yield start

    for live in started:
        await live.shutdown()


@pytest_asyncio.fixture
async def session(session_factory) -> Session:
    """A live session against the fake language server."""
    return await session_factory()
