"""
pytest 설정:

테스트는 항상 현재 레포의 pages_deploy 소스를 대상으로 해야 하므로,
repo root 를 sys.path 최상단에 고정한다.

공통 fixture:
    - vars_file: tmp_path 에 .vars.toml 을 써 주는 헬퍼
    - make_client: httpx.MockTransport 기반 RemoteClient 팩토리
"""

from __future__ import annotations

import os
import sys
import textwrap
from typing import Callable

import httpx
import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


VARS_TOML = """
CLOUDFLARE_ACCOUNT_ID = "acc123"
CLOUDFLARE_API_TOKEN = "tok456"
CLOUDFLARE_PROJECT_NAME = "my-app"
NODE_VERSION = "18"
APP_VERSION = "1.2.3"

[development]
CLOUDFLARE_API_TOKEN = "devtok"
APP_VERSION = "1.2.3-dev"

[preview]
NODE_VERSION = "20"
"""


@pytest.fixture(autouse=True)
def _clean_deployment_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DEPLOYMENT_ENVIRONMENT", raising=False)


@pytest.fixture
def vars_file(tmp_path) -> Callable[..., str]:  # noqa: ANN001
    def _write(content: str = VARS_TOML, name: str = ".vars.toml") -> str:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def make_client():  # noqa: ANN201
    from pages_deploy.remote import RemoteClient

    def _make(handler: Callable[[httpx.Request], httpx.Response], account_id: str = "acc123") -> RemoteClient:
        return RemoteClient(account_id, "tok456", transport=httpx.MockTransport(handler))

    return _make
