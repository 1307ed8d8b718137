from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .errors import ConfigError, ValidationError
from .logging_utils import get_logger


logger = get_logger(__name__)


ENV_FILES_DEFAULT_ORDER = [".env", ".env.local"]
VARS_FILE_DEFAULT = ".vars.toml"

PRODUCTION = "production"
PREVIEW = "preview"
DEVELOPMENT = "development"
ENVIRONMENTS = (PRODUCTION, PREVIEW, DEVELOPMENT)

ENVIRONMENT_VAR = "DEPLOYMENT_ENVIRONMENT"


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def current_environment(default: str = PRODUCTION) -> str:
    """
    DEPLOYMENT_ENVIRONMENT 로 활성 스코프를 결정한다.
    엔트리포인트마다 기본값이 다르므로 default 를 받는다.
    """
    env = os.getenv(ENVIRONMENT_VAR) or default
    if env not in ENVIRONMENTS:
        raise ConfigError(
            f"알 수 없는 {ENVIRONMENT_VAR} 값입니다: {env} "
            f"(허용: {', '.join(ENVIRONMENTS)})"
        )
    return env


@dataclass(frozen=True)
class VariableSpec:
    name: str
    is_secret: bool
    is_required: bool


# 원격 프로젝트로 동기화되는 변수 목록
ALLOWED_VARS: List[VariableSpec] = [
    VariableSpec("CLOUDFLARE_ACCOUNT_ID", is_secret=True, is_required=True),
    VariableSpec("CLOUDFLARE_PROJECT_NAME", is_secret=True, is_required=True),
    VariableSpec("CLOUDFLARE_API_TOKEN", is_secret=True, is_required=True),
    VariableSpec(ENVIRONMENT_VAR, is_secret=False, is_required=False),
    # Pages CI 가 올바른 Node 버전을 쓰도록 필요
    VariableSpec("NODE_VERSION", is_secret=False, is_required=False),
    VariableSpec("APP_VERSION", is_secret=False, is_required=False),
]

PROJECT_NAME_PATTERN = re.compile(r"[A-Za-z0-9-]+")


class ConfigSource:
    """
    .vars.toml 기반 계층형 설정.

    최상위 키는 전역 기본값이고, production/preview/development 테이블은
    해당 환경에서 전역 값을 덮어쓴다.

        CLOUDFLARE_PROJECT_NAME = "my-app"

        [development]
        CLOUDFLARE_PROJECT_NAME = "my-app-dev"
    """

    def __init__(self, environment: str, path: str = VARS_FILE_DEFAULT) -> None:
        self.environment = environment
        self.path = path
        self.data = self._load(path)

        scoped = self.data.get(environment, {})
        if not isinstance(scoped, dict):
            raise ConfigError(f"[{environment}] 섹션은 테이블이어야 합니다: {path}")
        self._scoped: Dict[str, Any] = scoped

    @staticmethod
    def _load(path: str) -> Dict[str, Any]:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"설정 파일을 찾을 수 없습니다: {path}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"설정 파일을 파싱할 수 없습니다: {path} ({e})") from e
        logger.debug("설정 파일 로드: %s (키 %d개)", path, len(data))
        return data

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._scoped:
            return self._scoped[key]
        if key in self.data and key not in ENVIRONMENTS:
            return self.data[key]
        return default

    def flatten_all(self) -> Dict[str, Any]:
        """
        전역에 정의된 모든 키를 현재 환경 기준으로 해석해 dict 로 반환한다.
        환경 이름 키(production/preview/development)는 제외한다.
        """
        return {
            key: self.get(key, "")
            for key in self.data
            if key not in ENVIRONMENTS
        }

    def require_vars(self, specs: Optional[List[VariableSpec]] = None) -> None:
        """
        required 로 표시된 변수가 모두 비어 있지 않은지 확인한다.
        누락된 변수는 한 번에 모아서 ValidationError 로 알린다.
        """
        missing = [
            spec.name
            for spec in (specs if specs is not None else ALLOWED_VARS)
            if spec.is_required and not self.get(spec.name)
        ]
        if missing:
            raise ValidationError("필수 변수가 누락되었습니다: " + ", ".join(missing))

    def require_project_name(self) -> str:
        name = self.project_name
        # 끝에 붙은 개행도 거부한다.
        if not PROJECT_NAME_PATTERN.fullmatch(name):
            raise ValidationError(f"잘못된 프로젝트 이름입니다: {name!r} (허용: A-Z a-z 0-9 -)")
        return name

    @property
    def project_name(self) -> str:
        return str(self.get("CLOUDFLARE_PROJECT_NAME", "") or "")

    @property
    def account_id(self) -> str:
        return str(self.get("CLOUDFLARE_ACCOUNT_ID", "") or "")

    @property
    def api_token(self) -> str:
        return str(self.get("CLOUDFLARE_API_TOKEN", "") or "")

    @property
    def production_branch(self) -> str:
        return str(self.get("PRODUCTION_BRANCH", "main") or "main")
