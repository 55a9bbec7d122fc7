"""식별자 포맷터 - SQL 식별자 인용/대소문자 처리 및 문자열 리터럴 이스케이프."""

import re

# 따옴표 없이 사용할 수 있는 식별자 문자
SAFE_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_]+")

# 예약어 (대소문자 무시) - 일반 SQL 키워드 + 객체 종류 키워드
RESERVED_WORDS = frozenset(
    {
        "table", "select", "from", "where", "insert", "update", "delete",
        "create", "alter", "drop", "grant", "revoke", "order", "by", "group",
        "having", "join", "left", "right", "outer", "inner", "full", "on",
        "union", "all", "as", "distinct", "limit", "offset", "with", "database",
        "schema", "warehouse", "role", "user", "password", "account", "view",
        "function", "procedure", "pipe", "stage", "file", "format", "sequence",
        "and", "or", "not", "null", "is", "in", "between", "like", "case",
        "when", "then", "else", "end", "primary", "foreign", "key", "references",
        "constraint", "unique", "check", "default", "column", "comment", "tag",
        "replace", "if", "exists", "into", "values", "set", "to", "of",
        "materialized_view", "dynamic_table", "iceberg_table",
    }
)


def is_reserved_word(word: str) -> bool:
    """예약어인지 확인한다."""
    return word.lower() in RESERVED_WORDS


def format_identifier(name: str) -> str:
    """식별자를 DDL에 안전한 형태로 변환한다.

    특수문자/공백이 포함되거나 예약어이면 큰따옴표로 감싸고 대소문자를 유지한다.
    그 외에는 기본 대소문자 규칙에 맞춰 대문자로 변환한다.

    Args:
        name: 원본 식별자

    Returns:
        DDL에 출력할 식별자
    """
    if not SAFE_IDENTIFIER_PATTERN.fullmatch(name) or is_reserved_word(name):
        return '"' + name.replace('"', '""') + '"'
    return name.upper()


def format_qualified_name(parts: list[str]) -> str:
    """정규화된 이름의 각 부분을 포맷하여 점으로 연결한다."""
    return ".".join(format_identifier(part) for part in parts)


def unquote_identifier(token: str) -> str:
    """큰따옴표로 감싼 식별자를 원래 이름으로 되돌린다."""
    token = token.strip()
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return token[1:-1].replace('""', '"')
    return token


def escape_literal(text: str) -> str:
    """문자열 리터럴용으로 작은따옴표를 이중화한다."""
    return text.replace("'", "''")


def unescape_literal(text: str) -> str:
    """이중화된 작은따옴표를 복원한다."""
    return text.replace("''", "'")
