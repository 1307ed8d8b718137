from __future__ import annotations

import subprocess
from dataclasses import dataclass
from textwrap import shorten

from .errors import CommandError
from .logging_utils import get_logger, redact_credentials


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


def run_shell(
    command: str,
    *,
    cwd: str | None = None,
    timeout: float | None = 900.0,
) -> RunResult:
    """
    CommandBuilder 가 만든 셸 명령 문자열을 실행한다.

    명령 앞에 `KEY=value` 인라인 환경변수가 붙어 있으므로 셸을 거쳐 실행한다.
    로그에는 자격증명을 가린 명령만 남긴다.
    """
    display = redact_credentials(command)
    logger.info("명령 실행: %s", display)

    try:
        result = subprocess.run(  # noqa: S602
            command,
            shell=True,
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
    except FileNotFoundError as e:
        raise CommandError(f"작업 디렉토리를 찾을 수 없습니다: {cwd}") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(
            f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {display}"
        ) from e
    except subprocess.CalledProcessError as e:
        stdout = (e.stdout or "").strip()
        stderr = (e.stderr or "").strip()
        detail = ""
        if stderr:
            detail = "\nstderr:\n" + shorten(stderr, width=2000)
        elif stdout:
            detail = "\nstdout:\n" + shorten(stdout, width=2000)
        if e.returncode == 127:
            # 셸이 명령을 찾지 못함
            detail += "\n(wrangler/yarn 이 PATH 에 설치되어 있는지 확인하세요)"
        raise CommandError(
            f"명령 실행 실패: {display} (exit={e.returncode}){detail}",
            returncode=e.returncode,
        ) from e

    if result.stdout:
        logger.debug("명령 stdout: %s", shorten(result.stdout.strip(), width=2000))
    if result.stderr:
        logger.debug("명령 stderr: %s", shorten(result.stderr.strip(), width=2000))
    return RunResult(returncode=result.returncode, stdout=result.stdout or "", stderr=result.stderr or "")
