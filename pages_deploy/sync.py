"""
sync
----

.vars.toml 의 변수들을 Pages 프로젝트의 deployment_configs 로 동기화하는 모듈.

단계:
    1) 필수 변수 검증
    2) 프로젝트 이름 검증
    3) D1 데이터베이스 id 조회 (없으면 바인딩 없이 진행)
    4) deployment_configs payload 구성
    5) PATCH 로 원격 프로젝트에 반영

어느 단계든 실패하면 전체 동기화를 중단한다. (부분 반영 없음)
"""

from __future__ import annotations

import enum
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from .commands import DATABASE_NAME_PRODUCTION, CommandBuilder
from .config import ALLOWED_VARS, ENVIRONMENT_VAR, ConfigSource, VariableSpec
from .errors import DeployError, FatalError
from .logging_utils import get_logger
from .remote import RemoteClient


logger = get_logger(__name__)


DATABASE_BINDING = DATABASE_NAME_PRODUCTION


class VarKind(str, enum.Enum):
    SECRET = "secret_text"
    PLAIN = "plain_text"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


class ConfigSyncer:
    def __init__(
        self,
        config: ConfigSource,
        commands: CommandBuilder,
        client: RemoteClient,
        specs: Optional[List[VariableSpec]] = None,
    ) -> None:
        self.config = config
        self.commands = commands
        self.client = client
        self.specs = specs if specs is not None else ALLOWED_VARS

    @property
    def environment(self) -> str:
        return self.config.environment

    @contextmanager
    def _step(self, name: str) -> Iterator[None]:
        try:
            yield
        except DeployError as e:
            if e.step is None:
                e.step = name
            logger.error("동기화 단계 실패: %s (%s)", name, e)
            raise

    def validate_required(self) -> None:
        self.config.require_vars(self.specs)

    def validate_project_name(self) -> None:
        self.config.require_project_name()

    def resolve_database_id(self) -> str:
        name = self.commands.database_name()
        database_id = self.client.lookup_database_id(name)
        logger.info("D1 데이터베이스 id 조회: %s (길이 %d)", name, len(database_id))
        return database_id

    def build_payload(self, database_id: str) -> Dict[str, Any]:
        env_vars: Dict[str, Dict[str, str]] = {}
        for spec in self.specs:
            value = self.config.get(spec.name)
            if spec.name == ENVIRONMENT_VAR and not value:
                value = self.environment
            env_vars[spec.name] = {
                "value": _stringify(value),
                "type": (VarKind.SECRET if spec.is_secret else VarKind.PLAIN).value,
            }

        env_config: Dict[str, Any] = {"env_vars": env_vars}
        if database_id:
            env_config["d1_databases"] = {DATABASE_BINDING: {"id": database_id}}

        return {"deployment_configs": {self.environment: env_config}}

    def push(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        path = self.client.project_path(self.config.project_name)
        response = self.client.patch(path, payload)
        if not response.ok:
            raise FatalError(f"환경변수 동기화 실패: {response.error_messages()}")

        body = response.body if isinstance(response.body, dict) else {}
        result = body.get("result") or {}
        configs = result.get("deployment_configs") if isinstance(result, dict) else None
        if isinstance(configs, dict) and isinstance(configs.get(self.environment), dict):
            return configs[self.environment].get("env_vars") or {}
        return body

    def sync_env_vars(self) -> Dict[str, Any]:
        """
        동기화를 수행하고, 원격에 반영된 현재 환경의 env_vars 를 반환한다.
        """
        logger.info("환경변수 동기화 시작 [%s]", self.environment)

        with self._step("validate_required"):
            self.validate_required()
        with self._step("validate_project_name"):
            self.validate_project_name()
        with self._step("resolve_database"):
            database_id = self.resolve_database_id()
        with self._step("build_payload"):
            payload = self.build_payload(database_id)
        with self._step("push"):
            synced = self.push(payload)

        logger.info("환경변수 동기화 완료 [%s]", self.environment)
        for name in sorted(synced):
            entry = synced[name]
            kind = entry.get("type", "") if isinstance(entry, dict) else ""
            logger.info("  - %s (%s)", name, kind)
        return synced
