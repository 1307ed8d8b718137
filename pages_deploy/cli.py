import os
import sys
from typing import NoReturn

import click

from .commands import DEFAULT_BUILD_DIR, DEFAULT_SCHEMA_FILE, CommandBuilder
from .config import (
    ALLOWED_VARS,
    DEVELOPMENT,
    PRODUCTION,
    VARS_FILE_DEFAULT,
    ConfigSource,
    current_environment,
    load_env_files,
)
from .database import init_app_db
from .errors import DeployError
from .logging_utils import setup_logging, get_logger
from .project import ProjectInitializer
from .remote import RemoteClient
from .subprocess_utils import run_shell
from .sync import ConfigSyncer
from .version import sync_app_version


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리)",
)
@click.option(
    "--vars-file",
    "vars_file",
    default=VARS_FILE_DEFAULT,
    show_default=True,
    help="작업 디렉토리 기준 변수 파일 경로",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (-vv 는 HTTP 요청 로그까지 출력)",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, vars_file: str, verbose: int) -> None:
    """Cloudflare Pages / D1 배포용 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["vars_file"] = vars_file
    ctx.obj["verbose"] = verbose


def _fail(e: DeployError) -> NoReturn:
    """모든 명령의 공통 오류 처리: 오류 종류별 exit code 로 종료."""
    logger.error("%s: %s", type(e).__name__, e)
    click.echo(f"[ERROR] {e}", err=True)
    sys.exit(e.exit_code)


def _fail_unexpected(e: Exception) -> NoReturn:
    """분류되지 않은 예외: traceback 은 로그로만 남기고 exit 1 로 종료."""
    logger.exception("예상하지 못한 오류 발생")
    click.echo(f"[ERROR] 예상하지 못한 오류: {type(e).__name__}: {e}", err=True)
    sys.exit(1)


def _load_config_from_ctx(ctx: click.Context, default_env: str) -> ConfigSource:
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    env = current_environment(default_env)
    cfg = ConfigSource(env, path=os.path.join(base_dir, ctx.obj["vars_file"]))
    logger.debug("Config loaded: %s [%s]", cfg.path, env)
    return cfg


def _client_for(cfg: ConfigSource) -> RemoteClient:
    return RemoteClient(cfg.account_id, cfg.api_token)


@main.command(name="init-project")
@click.pass_context
def init_project(ctx: click.Context) -> None:
    """Pages 프로젝트가 없으면 생성 (항상 production 설정 기준)"""
    try:
        base_dir: str = ctx.obj["chdir"]
        load_env_files(base_dir)
        cfg = ConfigSource(PRODUCTION, path=os.path.join(base_dir, ctx.obj["vars_file"]))
        with _client_for(cfg) as client:
            state = ProjectInitializer(cfg, client).run()
    except DeployError as e:
        _fail(e)
    except Exception as e:  # noqa: BLE001
        _fail_unexpected(e)

    click.echo(f"{cfg.project_name}: {state.value}")


@main.command(name="init-db")
@click.option(
    "--schema/--no-schema",
    "apply_schema",
    default=True,
    help="DB 생성 후 스키마 파일을 적용할지 여부",
)
@click.option(
    "--schema-file",
    default=DEFAULT_SCHEMA_FILE,
    show_default=True,
    help="적용할 SQL 스키마 파일",
)
@click.pass_context
def init_db(ctx: click.Context, apply_schema: bool, schema_file: str) -> None:
    """D1 데이터베이스 생성 및 스키마 적용 (기본 환경: development)"""
    try:
        cfg = _load_config_from_ctx(ctx, DEVELOPMENT)
        results = init_app_db(
            CommandBuilder(cfg),
            apply_schema=apply_schema,
            schema_file=schema_file,
            cwd=ctx.obj["chdir"],
        )
    except DeployError as e:
        _fail(e)
    except Exception as e:  # noqa: BLE001
        _fail_unexpected(e)

    for result in results:
        if result.stdout.strip():
            click.echo(result.stdout.rstrip())
        if result.stderr.strip():
            click.echo(result.stderr.rstrip(), err=True)


@main.command()
@click.option(
    "--build-dir",
    default=DEFAULT_BUILD_DIR,
    show_default=True,
    help="배포할 빌드 결과 디렉토리",
)
@click.pass_context
def publish(ctx: click.Context, build_dir: str) -> None:
    """빌드 결과를 Pages 프로젝트로 배포 (기본 환경: production)"""
    try:
        cfg = _load_config_from_ctx(ctx, PRODUCTION)
        result = run_shell(CommandBuilder(cfg).publish_command(build_dir), cwd=ctx.obj["chdir"])
    except DeployError as e:
        _fail(e)
    except Exception as e:  # noqa: BLE001
        _fail_unexpected(e)

    click.echo(result.stdout.rstrip())


@main.command(name="sync")
@click.pass_context
def sync_cmd(ctx: click.Context) -> None:
    """.vars.toml 변수를 Pages 프로젝트 환경변수로 동기화 (기본 환경: production)"""
    try:
        cfg = _load_config_from_ctx(ctx, PRODUCTION)
        with _client_for(cfg) as client:
            synced = ConfigSyncer(cfg, CommandBuilder(cfg), client).sync_env_vars()
    except DeployError as e:
        _fail(e)
    except Exception as e:  # noqa: BLE001
        _fail_unexpected(e)

    click.echo(f"# Synced env vars [{cfg.environment}]")
    for name in sorted(synced):
        entry = synced[name]
        kind = entry.get("type", "") if isinstance(entry, dict) else ""
        click.echo(f"- {name} ({kind})" if kind else f"- {name}")


@main.command(name="bump-version")
@click.pass_context
def bump_version(ctx: click.Context) -> None:
    """package.json version 을 APP_VERSION 으로 갱신"""
    try:
        cfg = _load_config_from_ctx(ctx, PRODUCTION)
        result = sync_app_version(cfg, cwd=ctx.obj["chdir"])
    except DeployError as e:
        _fail(e)
    except Exception as e:  # noqa: BLE001
        _fail_unexpected(e)

    if result.stdout.strip():
        click.echo(result.stdout.rstrip())


@main.command(name="vars")
@click.option(
    "--show-secrets",
    is_flag=True,
    help="시크릿 변수 값을 가리지 않고 출력합니다.",
)
@click.pass_context
def show_vars(ctx: click.Context, show_secrets: bool) -> None:
    """현재 환경 기준으로 해석된 변수 목록 출력 (기본 환경: production)"""
    try:
        cfg = _load_config_from_ctx(ctx, PRODUCTION)
    except DeployError as e:
        _fail(e)
    except Exception as e:  # noqa: BLE001
        _fail_unexpected(e)

    secret_names = {spec.name for spec in ALLOWED_VARS if spec.is_secret}
    click.echo(f"# Vars [{cfg.environment}] ({cfg.path})")
    for key, value in sorted(cfg.flatten_all().items()):
        if key in secret_names and not show_secrets:
            value = "***"
        click.echo(f"- {key}={value}")
