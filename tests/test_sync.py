import json

import httpx
import pytest

from pages_deploy.commands import CommandBuilder
from pages_deploy.config import ConfigSource
from pages_deploy.errors import FatalError, TransportError, ValidationError
from pages_deploy.sync import ConfigSyncer


def _syncer(cfg: ConfigSource, client) -> ConfigSyncer:  # noqa: ANN001
    return ConfigSyncer(cfg, CommandBuilder(cfg), client)


def _fake_api(database_result: list, patched: list):  # noqa: ANN202
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "result": database_result})
        body = json.loads(request.content)
        patched.append(body)
        return httpx.Response(200, json={"success": True, "result": body})

    return handler


def test_sync_end_to_end_reports_synced_vars(vars_file, make_client) -> None:
    patched: list[dict] = []
    cfg = ConfigSource("production", vars_file())
    handler = _fake_api([{"name": "discussdb", "uuid": "db-uuid"}], patched)

    with make_client(handler) as client:
        synced = _syncer(cfg, client).sync_env_vars()

    assert set(synced) == {
        "CLOUDFLARE_ACCOUNT_ID",
        "CLOUDFLARE_PROJECT_NAME",
        "CLOUDFLARE_API_TOKEN",
        "DEPLOYMENT_ENVIRONMENT",
        "NODE_VERSION",
        "APP_VERSION",
    }
    env_config = patched[0]["deployment_configs"]["production"]
    assert env_config["d1_databases"] == {"discussdb": {"id": "db-uuid"}}
    assert env_config["env_vars"]["CLOUDFLARE_API_TOKEN"] == {"value": "tok456", "type": "secret_text"}
    assert env_config["env_vars"]["NODE_VERSION"] == {"value": "18", "type": "plain_text"}
    assert env_config["env_vars"]["DEPLOYMENT_ENVIRONMENT"] == {"value": "production", "type": "plain_text"}


def test_sync_without_database_has_no_binding(vars_file, make_client) -> None:
    patched: list[dict] = []
    cfg = ConfigSource("development", vars_file())

    with make_client(_fake_api([], patched)) as client:
        _syncer(cfg, client).sync_env_vars()

    env_config = patched[0]["deployment_configs"]["development"]
    assert "d1_databases" not in env_config
    assert env_config["env_vars"]["APP_VERSION"]["value"] == "1.2.3-dev"


def test_validation_lists_all_missing_vars(vars_file, make_client) -> None:
    cfg = ConfigSource("production", vars_file('NODE_VERSION = "18"\n'))

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("검증 실패 시 API 를 호출하면 안 된다")

    with make_client(handler) as client, pytest.raises(ValidationError) as excinfo:
        _syncer(cfg, client).sync_env_vars()

    message = str(excinfo.value)
    assert excinfo.value.step == "validate_required"
    for name in ("CLOUDFLARE_ACCOUNT_ID", "CLOUDFLARE_PROJECT_NAME", "CLOUDFLARE_API_TOKEN"):
        assert name in message


@pytest.mark.parametrize("name", ["my app", "my_app", "app!", "프로젝트", "my-app\n", "my-app\t"])
def test_invalid_project_name_is_rejected(vars_file, make_client, name: str) -> None:
    path = vars_file(
        f"""
        CLOUDFLARE_ACCOUNT_ID = "acc123"
        CLOUDFLARE_API_TOKEN = "tok456"
        CLOUDFLARE_PROJECT_NAME = {json.dumps(name)}
        """
    )
    cfg = ConfigSource("production", path)

    with make_client(_fake_api([], [])) as client, pytest.raises(ValidationError) as excinfo:
        _syncer(cfg, client).sync_env_vars()

    assert excinfo.value.step == "validate_project_name"


def test_valid_project_name_passes(vars_file, make_client) -> None:
    cfg = ConfigSource("production", vars_file())

    with make_client(_fake_api([], [])) as client:
        _syncer(cfg, client).validate_project_name()


def test_patch_failure_aborts_with_step(vars_file, make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "result": []})
        return httpx.Response(400, json={"success": False, "errors": [{"message": "invalid env var"}]})

    cfg = ConfigSource("production", vars_file())
    with make_client(handler) as client, pytest.raises(FatalError) as excinfo:
        _syncer(cfg, client).sync_env_vars()

    assert excinfo.value.step == "push"
    assert "invalid env var" in str(excinfo.value)


def test_transport_failure_during_lookup_aborts(vars_file, make_client) -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        raise httpx.ConnectError("down", request=request)

    cfg = ConfigSource("production", vars_file())
    with make_client(handler) as client, pytest.raises(TransportError) as excinfo:
        _syncer(cfg, client).sync_env_vars()

    assert excinfo.value.step == "resolve_database"
    assert methods == ["GET"]


def test_build_payload_stringifies_non_string_values(vars_file, make_client) -> None:
    path = vars_file(
        """
        CLOUDFLARE_ACCOUNT_ID = "acc123"
        CLOUDFLARE_API_TOKEN = "tok456"
        CLOUDFLARE_PROJECT_NAME = "my-app"
        NODE_VERSION = 18
        """
    )
    cfg = ConfigSource("preview", path)

    with make_client(_fake_api([], [])) as client:
        payload = _syncer(cfg, client).build_payload("")

    env_vars = payload["deployment_configs"]["preview"]["env_vars"]
    assert env_vars["NODE_VERSION"]["value"] == "18"
    assert env_vars["APP_VERSION"]["value"] == ""


def test_push_returns_body_when_env_vars_missing_from_response(vars_file, make_client) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "result": []})
        return httpx.Response(200, json={"success": True, "result": {}})

    cfg = ConfigSource("production", vars_file())
    with make_client(handler) as client:
        synced = _syncer(cfg, client).sync_env_vars()

    assert synced == {"success": True, "result": {}}
