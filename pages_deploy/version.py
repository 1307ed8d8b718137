"""
version
-------

package.json 의 version 을 설정 파일의 APP_VERSION 으로 맞춘다.
"""

from __future__ import annotations

import shlex

from .config import ConfigSource
from .errors import ValidationError
from .logging_utils import get_logger
from .subprocess_utils import RunResult, run_shell


logger = get_logger(__name__)


def bump_command(version: str) -> str:
    return f"yarn version {shlex.quote(version)}"


def sync_app_version(config: ConfigSource, *, cwd: str | None = None) -> RunResult:
    version = str(config.get("APP_VERSION", "") or "")
    if not version:
        raise ValidationError("APP_VERSION 이 설정되지 않았습니다.", step="bump_version")

    result = run_shell(bump_command(version), cwd=cwd)
    logger.info("package.json version 을 %s 로 갱신했습니다.", version)
    return result
