"""
project
-------

Pages 프로젝트 존재 여부를 확인하고, 없으면 생성하는 모듈.
"""

from __future__ import annotations

import enum

from .config import ConfigSource
from .errors import FatalError
from .logging_utils import get_logger
from .remote import RemoteClient


logger = get_logger(__name__)


class ProjectState(str, enum.Enum):
    CHECKING = "checking"
    EXISTS = "exists"
    MISSING = "missing"
    CREATED = "created"


class ProjectInitializer:
    def __init__(self, config: ConfigSource, client: RemoteClient) -> None:
        self.config = config
        self.client = client
        self.state = ProjectState.CHECKING

    def check(self) -> ProjectState:
        self.config.require_vars()
        name = self.config.require_project_name()
        logger.info("프로젝트 존재 여부 확인: %s", name)

        response = self.client.get(self.client.project_path(name))
        if response.status_code == 404:
            self.state = ProjectState.MISSING
        elif response.ok:
            self.state = ProjectState.EXISTS
            logger.info("프로젝트가 이미 존재합니다: %s", name)
            logger.debug("프로젝트 정보: %s", response.body)
        else:
            raise FatalError(
                f"프로젝트 조회 실패: {name} ({response.error_messages()})"
            )
        return self.state

    def create(self) -> ProjectState:
        """
        프로젝트를 생성한다. 실패하면 이어서 진행할 안전한 상태가 없으므로 FatalError.
        """
        name = self.config.require_project_name()
        payload = {
            "name": name,
            "subdomain": name,
            "production_branch": self.config.production_branch,
        }
        logger.info("프로젝트 생성: %s (production_branch=%s)", name, payload["production_branch"])

        response = self.client.post(self.client.projects_path(), payload)
        if not response.ok:
            raise FatalError(f"프로젝트 생성 실패: {name} ({response.error_messages()})")

        self.state = ProjectState.CREATED
        logger.info("프로젝트 생성 완료: %s", name)
        return self.state

    def run(self) -> ProjectState:
        logger.info("프로젝트 초기화: %s [%s]", self.config.project_name, self.config.environment)
        if self.check() == ProjectState.MISSING:
            return self.create()
        return self.state
