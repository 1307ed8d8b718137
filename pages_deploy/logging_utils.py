import logging
import re
import sys


# KEY=value 형태의 인라인 자격증명 (CLOUDFLARE_API_TOKEN=... 등)
# 값은 shlex.quote 결과('a b', 'a'"'"'b' 포함)이거나 공백 없는 단어다.
_CREDENTIAL_ASSIGNMENT = re.compile(
    r"\b([A-Z0-9_]*(?:TOKEN|SECRET|ACCOUNT_ID))="
    r"((?:'[^']*'|\"'\")+|\S+)"
)


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )

    # httpx 는 요청마다 INFO 로그를 남기므로 -vv 이상에서만 노출한다.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbosity >= 2 else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def redact_credentials(text: str) -> str:
    """
    로그에 남기기 전에 인라인 자격증명 값을 가린다.
    """
    return _CREDENTIAL_ASSIGNMENT.sub(lambda m: f"{m.group(1)}=***", text)
