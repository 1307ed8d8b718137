"""
pages_deploy
------------

Cloudflare Pages/D1 용 배포 자동화 CLI 패키지.
.vars.toml 설정을 읽어 Pages 프로젝트 생성, D1 데이터베이스 준비,
환경변수/시크릿 동기화, 버전 갱신을 한 번에 처리하는 것을 목표로 한다.
"""

__all__ = [
    "config",
    "sync",
]
