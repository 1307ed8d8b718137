"""
commands
--------

wrangler CLI 명령 문자열을 조립하는 모듈.

실행은 하지 않는다. 모든 명령 앞에는 계정 ID/API 토큰이
인라인 환경변수로 붙는다.
"""

from __future__ import annotations

import shlex

from .config import PRODUCTION, ConfigSource
from .logging_utils import get_logger


logger = get_logger(__name__)


DATABASE_NAME_PRODUCTION = "discussdb"
DEFAULT_BUILD_DIR = "_build"
DEFAULT_SCHEMA_FILE = "_build/db.sql"

ACCOUNT_ID_VAR = "CLOUDFLARE_ACCOUNT_ID"
API_TOKEN_VAR = "CLOUDFLARE_API_TOKEN"


class CommandBuilder:
    def __init__(self, config: ConfigSource) -> None:
        self.config = config
        self.environment = config.environment

    def _with_credentials(self, wrangler_cmd: str) -> str:
        return (
            f"{ACCOUNT_ID_VAR}={shlex.quote(self.config.account_id)} "
            f"{API_TOKEN_VAR}={shlex.quote(self.config.api_token)} "
            + wrangler_cmd
        )

    def database_name(self) -> str:
        """
        production 은 고정 이름, 그 외 환경은 프로젝트/환경별로 분리된 이름을 쓴다.
        """
        if self.environment == PRODUCTION:
            return DATABASE_NAME_PRODUCTION
        return f"{self.config.project_name}_discussdb_{self.environment}"

    def publish_branch(self) -> str:
        # Pages direct upload 는 브랜치로 배포 환경(production/preview)을 구분한다.
        branch = self.config.production_branch
        if self.environment == PRODUCTION:
            return branch
        return f"{branch}-preview"

    def publish_command(self, build_dir: str = DEFAULT_BUILD_DIR) -> str:
        wrangler_cmd = (
            f"wrangler pages deploy {shlex.quote(build_dir)} "
            f"--project-name {shlex.quote(self.config.project_name)} "
            f"--branch {shlex.quote(self.publish_branch())}"
        )
        logger.debug("publish 명령: %s", wrangler_cmd)
        return self._with_credentials(wrangler_cmd)

    def create_database_command(self) -> str:
        wrangler_cmd = f"wrangler d1 create {shlex.quote(self.database_name())}"
        logger.debug("DB 생성 명령: %s", wrangler_cmd)
        return self._with_credentials(wrangler_cmd)

    def apply_database_schema_command(self, schema_file: str = DEFAULT_SCHEMA_FILE) -> str:
        wrangler_cmd = (
            f"wrangler d1 execute {shlex.quote(self.database_name())} "
            f"--file {shlex.quote(schema_file)} --remote"
        )
        logger.debug("스키마 적용 명령: %s", wrangler_cmd)
        return self._with_credentials(wrangler_cmd)
