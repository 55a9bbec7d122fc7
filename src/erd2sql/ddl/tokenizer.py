"""DDL 텍스트 토크나이저 - 문장 분리, 주석 제거, 괄호 블록 추출."""

from typing import Optional

QUOTE_CHARS = ("'", '"')


def split_statements(ddl: str) -> list[str]:
    """DDL 텍스트를 세미콜론 기준으로 문장 단위로 분리한다.

    따옴표 문자열과 주석 내부의 세미콜론은 구분자로 취급하지 않는다.
    역슬래시로 이스케이프된 따옴표는 문자열 상태를 바꾸지 않는다.
    주석은 한 번 시작되면 따옴표 상태와 무관하게 줄 끝(블록 주석은 */)까지 유지된다.

    Args:
        ddl: 원본 DDL 텍스트

    Returns:
        앞뒤 공백이 제거된 문장 리스트 (빈 문장 제외)
    """
    statements: list[str] = []
    current: list[str] = []
    quote: Optional[str] = None
    in_line_comment = False
    in_block_comment = False

    i = 0
    length = len(ddl)
    while i < length:
        char = ddl[i]
        next_char = ddl[i + 1] if i + 1 < length else ""

        if in_line_comment:
            current.append(char)
            if char in "\r\n":
                in_line_comment = False
            i += 1
            continue

        if in_block_comment:
            current.append(char)
            if char == "*" and next_char == "/":
                current.append(next_char)
                in_block_comment = False
                i += 2
                continue
            i += 1
            continue

        if quote is None:
            if char == "-" and next_char == "-":
                in_line_comment = True
                current.append(char)
                i += 1
                continue
            if char == "/" and next_char == "*":
                in_block_comment = True
                current.append(char + next_char)
                i += 2
                continue

        if char in QUOTE_CHARS and (i == 0 or ddl[i - 1] != "\\"):
            if quote is None:
                quote = char
            elif char == quote:
                quote = None

        if char == ";" and quote is None:
            _flush(current, statements)
            current = []
        else:
            current.append(char)
        i += 1

    _flush(current, statements)
    return statements


def _flush(current: list[str], statements: list[str]) -> None:
    """현재까지 모은 문자를 문장으로 추가한다."""
    statement = "".join(current).strip()
    if statement:
        statements.append(statement)


def strip_comments(statement: str) -> str:
    """문장에서 -- 줄 주석과 /* */ 블록 주석을 제거한다.

    문자열 리터럴 내부의 주석 기호는 유지한다.
    """
    result: list[str] = []
    quote: Optional[str] = None

    i = 0
    length = len(statement)
    while i < length:
        char = statement[i]
        next_char = statement[i + 1] if i + 1 < length else ""

        if quote is None and char == "-" and next_char == "-":
            end = _find_line_end(statement, i)
            i = end
            continue
        if quote is None and char == "/" and next_char == "*":
            end = statement.find("*/", i + 2)
            i = length if end == -1 else end + 2
            result.append(" ")
            continue

        if char in QUOTE_CHARS and (i == 0 or statement[i - 1] != "\\"):
            if quote is None:
                quote = char
            elif char == quote:
                quote = None

        result.append(char)
        i += 1

    return "".join(result).strip()


def _find_line_end(text: str, start: int) -> int:
    """start 이후 첫 줄바꿈 위치 (없으면 텍스트 길이)."""
    for idx in range(start, len(text)):
        if text[idx] in "\r\n":
            return idx
    return len(text)


def extract_parenthesized(text: str, open_idx: int) -> tuple[str, int]:
    """여는 괄호 위치부터 짝이 맞는 닫는 괄호까지의 내용을 추출한다.

    괄호 깊이를 추적하므로 NUMBER(10,2) 같은 중첩 괄호를 포함할 수 있다.
    따옴표 내부의 괄호는 무시한다.

    Args:
        text: 원본 텍스트
        open_idx: '(' 문자의 인덱스

    Returns:
        (괄호 안 내용, 닫는 괄호 다음 인덱스) 튜플.
        닫는 괄호가 없으면 텍스트 끝까지를 내용으로 본다.
    """
    depth = 0
    quote: Optional[str] = None

    for idx in range(open_idx, len(text)):
        char = text[idx]
        if quote is not None:
            if char == quote:
                quote = None
            continue
        if char in QUOTE_CHARS:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return text[open_idx + 1:idx].strip(), idx + 1

    return text[open_idx + 1:].strip(), len(text)


def split_top_level(body: str) -> list[str]:
    """괄호 깊이 0, 따옴표 밖에 있는 쉼표 기준으로 분리한다."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    in_single = False
    in_double = False

    for char in body:
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double
        elif not in_single and not in_double:
            if char == "(":
                depth += 1
            elif char == ")":
                depth = max(0, depth - 1)
            elif char == "," and depth == 0:
                parts.append("".join(current).strip())
                current = []
                continue
        current.append(char)

    if current:
        parts.append("".join(current).strip())
    return [part for part in parts if part]
