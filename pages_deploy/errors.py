"""
errors
------

배포 스크립트 전반에서 사용하는 예외 계층.

CLI 엔트리포인트는 DeployError 만 잡아서 exit_code 로 종료한다.
각 단계는 실패 시 바로 예외를 올리고, 재시도는 하지 않는다.
"""

from __future__ import annotations

from typing import Optional


class DeployError(RuntimeError):
    """모든 배포 오류의 기반 클래스."""

    exit_code: int = 1

    def __init__(self, message: str, *, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.step = step

    def __str__(self) -> str:
        message = super().__str__()
        if self.step:
            return f"[{self.step}] {message}"
        return message


class ConfigError(DeployError):
    """설정 파일이 없거나 파싱할 수 없는 경우."""

    exit_code = 2


class ValidationError(DeployError):
    """필수 변수 누락, 잘못된 프로젝트 이름 등."""

    exit_code = 3


class TransportError(DeployError):
    """네트워크 오류로 API 응답을 받지 못한 경우."""

    exit_code = 4


class ParseError(DeployError):
    """API 응답 본문이 올바른 JSON 이 아닌 경우."""

    exit_code = 5


class FatalError(DeployError):
    """플랫폼 쪽 실패로 더 이상 진행할 수 없는 경우 (프로젝트 생성 실패 등)."""

    exit_code = 6


class CommandError(DeployError):
    """외부 CLI(wrangler/yarn) 실행 실패."""

    exit_code = 7

    def __init__(
        self,
        message: str,
        *,
        returncode: Optional[int] = None,
        step: Optional[str] = None,
    ) -> None:
        super().__init__(message, step=step)
        self.returncode = returncode
