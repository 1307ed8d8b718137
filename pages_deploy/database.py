"""
database
--------

D1 데이터베이스 생성 및 스키마 적용을 담당하는 모듈.
"""

from __future__ import annotations

from typing import List

from .commands import DEFAULT_SCHEMA_FILE, CommandBuilder
from .errors import DeployError
from .logging_utils import get_logger
from .subprocess_utils import RunResult, run_shell


logger = get_logger(__name__)


def init_app_db(
    commands: CommandBuilder,
    *,
    apply_schema: bool = True,
    schema_file: str = DEFAULT_SCHEMA_FILE,
    cwd: str | None = None,
) -> List[RunResult]:
    """
    데이터베이스를 만들고, apply_schema 가 켜져 있으면 스키마를 적용한다.

    생성은 성공했지만 스키마 적용이 실패한 경우 그 사실을 로그로 남긴 뒤 예외를 올린다.
    """
    name = commands.database_name()
    logger.info("D1 데이터베이스 준비: %s [%s]", name, commands.environment)

    results = [run_shell(commands.create_database_command(), cwd=cwd)]
    logger.info("D1 데이터베이스 생성 완료: %s", name)

    if not apply_schema:
        logger.info("스키마 적용을 건너뜁니다.")
        return results

    try:
        results.append(run_shell(commands.apply_database_schema_command(schema_file), cwd=cwd))
    except DeployError:
        logger.error("부분 성공: 데이터베이스 %s 는 생성되었지만 스키마(%s) 적용에 실패했습니다.", name, schema_file)
        raise

    logger.info("스키마 적용 완료: %s <- %s", name, schema_file)
    return results
