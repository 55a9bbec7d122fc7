"""DDL 파서 - SQL DDL 텍스트를 스키마 그래프로 복원."""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from erd2sql.core.config import Settings, get_settings
from erd2sql.core.identifiers import unescape_literal, unquote_identifier
from erd2sql.core.models import (
    Column,
    ConversionResult,
    Diagnostic,
    DiagnosticKind,
    ObjectKind,
    Relationship,
    ResolutionTier,
    SchemaObject,
)
from erd2sql.ddl.tokenizer import (
    extract_parenthesized,
    split_statements,
    split_top_level,
    strip_comments,
)

logger = logging.getLogger(__name__)

# 이름 한 부분: "따옴표 이름" 또는 bare 토큰
NAME_PART = r'(?:"(?:[^"]|"")+"|[A-Za-z0-9_$]+)'

# 1~3 부분의 정규화된 이름 (DB.SCHEMA.OBJECT)
QUALIFIED_NAME = rf"{NAME_PART}(?:\s*\.\s*{NAME_PART}){{0,2}}"

NAME_PART_PATTERN = re.compile(NAME_PART)

CREATE_PATTERN = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?"
    r"(TABLE|VIEW|MATERIALIZED[\s_]+VIEW|DYNAMIC[\s_]+TABLE|ICEBERG[\s_]+TABLE)\s+"
    rf"(?:IF\s+NOT\s+EXISTS\s+)?({QUALIFIED_NAME})",
    re.IGNORECASE,
)

ALTER_FOREIGN_KEY_PATTERN = re.compile(
    rf"^\s*ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?({QUALIFIED_NAME})\s+"
    rf"ADD\s+(?:CONSTRAINT\s+{NAME_PART}\s+)?FOREIGN\s+KEY\s*(?=\()",
    re.IGNORECASE,
)

COLUMN_TAG_PATTERN = re.compile(
    rf"^\s*ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?({QUALIFIED_NAME})\s+"
    rf"(?:MODIFY|ALTER)\s+(?:COLUMN\s+)?({NAME_PART})\s+SET\s+TAG\s*(?=\()",
    re.IGNORECASE,
)

REFERENCES_PATTERN = re.compile(
    rf"\s*REFERENCES\s+({QUALIFIED_NAME})\s*(?=\()", re.IGNORECASE
)

# CREATE 본문 내 제약 조건 줄 (CHECK는 group 1이 None)
CONSTRAINT_LINE_PATTERN = re.compile(
    rf"^(?:CONSTRAINT\s+{NAME_PART}\s+)?(?:(PRIMARY|FOREIGN|UNIQUE)\s+KEY\b|CHECK\s*\()",
    re.IGNORECASE,
)

COLUMN_NAME_PATTERN = re.compile(rf"^({NAME_PART})(?=\s|$)")
DATA_TYPE_PATTERN = re.compile(r"\s*([A-Za-z0-9_]+)")
NOT_NULL_PATTERN = re.compile(r"\bNOT\s+NULL\b", re.IGNORECASE)
INLINE_PRIMARY_KEY_PATTERN = re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE)
COLUMN_COMMENT_PATTERN = re.compile(r"\bCOMMENT\s*=?\s*'((?:[^']|'')*)'", re.IGNORECASE)
STRING_LITERAL_PATTERN = re.compile(r"'(?:[^']|'')*'")

TABLE_COMMENT_PATTERN = re.compile(r"\bCOMMENT\s*=\s*'((?:[^']|'')*)'", re.IGNORECASE)
TAG_CLAUSE_PATTERN = re.compile(r"\bWITH\s+TAG\s*(?=\()", re.IGNORECASE)

# 'tag' = 'true' 또는 tag = 'true'
TAG_NAME_PATTERN = re.compile(
    r"(?:'((?:[^']|'')+)'|\"((?:[^\"]|\"\")+)\"|([A-Za-z0-9_$.]+))\s*=\s*'true'",
    re.IGNORECASE,
)

# 매칭 단계의 강도 순서 (뒤로 갈수록 약함)
TIER_ORDER = [ResolutionTier.EXACT, ResolutionTier.QUALIFIED, ResolutionTier.SUFFIX]


def split_qualified_name(text: str) -> list[str]:
    """정규화된 이름 텍스트를 부분 리스트로 분리한다.

    전체가 하나의 따옴표 이름이고 점을 포함하면 ("DB.SCHEMA.T") 점 기준으로 나눈다.
    """
    tokens = NAME_PART_PATTERN.findall(text)
    parts = [unquote_identifier(token) for token in tokens]
    if len(tokens) == 1 and tokens[0].startswith('"') and "." in parts[0]:
        parts = [part for part in parts[0].split(".") if part]
    return parts


def parse_tag_names(text: str) -> list[str]:
    """태그 목록 텍스트에서 태그 이름을 추출한다."""
    tags: list[str] = []
    for match in TAG_NAME_PATTERN.finditer(text):
        if match.group(1) is not None:
            name = unescape_literal(match.group(1))
        elif match.group(2) is not None:
            name = match.group(2).replace('""', '"')
        else:
            name = match.group(3)
        if name not in tags:
            tags.append(name)
    return tags


@dataclass
class ForeignKeyReference:
    """아직 해석되지 않은 외래 키 참조."""

    source_parts: list[str]
    source_columns: list[str]
    target_parts: list[str]
    target_columns: list[str]
    statement: str


@dataclass
class ColumnTagAssignment:
    """ALTER ... MODIFY COLUMN ... SET TAG 문에서 추출한 컬럼 태그."""

    table_parts: list[str]
    column_name: str
    tags: list[str]
    statement: str


@dataclass
class _ParseContext:
    """parse() 호출 1회 동안만 유지되는 작업 상태."""

    result: ConversionResult = field(default_factory=ConversionResult)
    by_short_name: dict[str, SchemaObject] = field(default_factory=dict)
    foreign_keys: list[ForeignKeyReference] = field(default_factory=list)
    column_tags: list[ColumnTagAssignment] = field(default_factory=list)


class DDLParser:
    """SQL DDL을 스키마 그래프로 변환하는 파서.

    구조적으로 해석할 수 없는 문장은 건너뛰며 예외를 던지지 않는다.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """파서 초기화.

        Args:
            settings: 변환 설정 (생략 시 기본 설정)
        """
        self._settings = settings or get_settings()

    def parse(self, ddl: str) -> ConversionResult:
        """DDL 텍스트를 파싱한다.

        Args:
            ddl: DDL 텍스트

        Returns:
            객체/관계/진단을 담은 ConversionResult
        """
        context = _ParseContext()
        statements = [strip_comments(stmt) for stmt in split_statements(ddl)]
        statements = [stmt for stmt in statements if stmt]

        logger.info("Parsing %d SQL statements", len(statements))

        # 1차: 객체 생성, ALTER 문 분류
        for statement in statements:
            if CREATE_PATTERN.match(statement):
                self._parse_create(statement, context)
            elif ALTER_FOREIGN_KEY_PATTERN.match(statement):
                self._collect_alter_foreign_key(statement, context)
            elif COLUMN_TAG_PATTERN.match(statement):
                self._collect_column_tags(statement, context)
            else:
                self._ignore(statement, "unrecognized statement", context)

        # 2차: 참조 해석
        for assignment in context.column_tags:
            self._apply_column_tags(assignment, context)
        for reference in context.foreign_keys:
            self._resolve_foreign_key(reference, context)

        result = context.result
        logger.info(
            "Created %d tables and %d relationships",
            len(result.objects),
            len(result.relationships),
        )
        return result

    def _parse_create(self, statement: str, context: _ParseContext) -> None:
        """CREATE 문을 파싱하여 객체를 추가한다."""
        match = CREATE_PATTERN.match(statement)
        kind = ObjectKind.from_keyword(match.group(1))
        name_parts = split_qualified_name(match.group(2))
        if not name_parts:
            self._ignore(statement, "object name not found", context)
            return

        body = ""
        tail_start = match.end()
        paren = re.match(r"\s*\(", statement[match.end():])
        if paren:
            open_idx = match.end() + paren.end() - 1
            body, tail_start = extract_parenthesized(statement, open_idx)
        tail = statement[tail_start:]

        columns = self._parse_columns(body, name_parts, statement, context)

        comment = None
        comment_match = TABLE_COMMENT_PATTERN.search(tail)
        if comment_match:
            comment = unescape_literal(comment_match.group(1))

        tags: list[str] = []
        tag_match = TAG_CLAUSE_PATTERN.search(tail)
        if tag_match:
            tag_text, _ = extract_parenthesized(tail, tag_match.end())
            tags = parse_tag_names(tag_text)

        obj = SchemaObject(
            name_parts=name_parts,
            kind=kind,
            columns=columns,
            comment=comment,
            tags=tags,
        )
        self._register(obj, statement, context)

    def _register(
        self, obj: SchemaObject, statement: str, context: _ParseContext
    ) -> None:
        """객체를 결과에 추가한다. 같은 짧은 이름이 있으면 그 자리를 대체한다."""
        key = obj.short_name.upper()
        existing = context.by_short_name.get(key)
        objects = context.result.objects

        if existing is not None:
            objects[objects.index(existing)] = obj
            message = (
                f"{obj.qualified_name} replaces earlier definition of "
                f"{existing.qualified_name}"
            )
            logger.warning(message)
            context.result.diagnostics.append(
                Diagnostic(DiagnosticKind.DUPLICATE_OBJECT, message, statement)
            )
        else:
            objects.append(obj)

        context.by_short_name[key] = obj

    def _parse_columns(
        self,
        body: str,
        name_parts: list[str],
        statement: str,
        context: _ParseContext,
    ) -> list[Column]:
        """컬럼 정의 블록을 파싱한다.

        괄호 깊이 0의 쉼표로 항목을 나누므로 NUMBER(10,2) 같은 타입 인자가 분리되지 않는다.
        """
        columns: list[Column] = []
        primary_keys: list[str] = []

        for line in split_top_level(body):
            constraint = CONSTRAINT_LINE_PATTERN.match(line)
            if constraint:
                keyword = (constraint.group(1) or "CHECK").upper()
                if keyword == "PRIMARY":
                    primary_keys.extend(self._paren_names(line, constraint.end()))
                elif keyword == "FOREIGN":
                    reference = self._parse_foreign_key_clause(
                        line, constraint.end(), name_parts, statement
                    )
                    if reference is not None:
                        context.foreign_keys.append(reference)
                continue

            column = self._parse_column_line(line)
            if column is not None:
                columns.append(column)

        primary_key_set = {name.upper() for name in primary_keys}
        for column in columns:
            if column.name.upper() in primary_key_set:
                column.is_primary_key = True

        return columns

    def _parse_column_line(self, line: str) -> Optional[Column]:
        """컬럼 정의 한 줄을 파싱한다."""
        name_match = COLUMN_NAME_PATTERN.match(line)
        if not name_match:
            return None

        name = unquote_identifier(name_match.group(1))
        position = name_match.end()

        data_type = self._settings.default_data_type
        type_match = DATA_TYPE_PATTERN.match(line, position)
        if type_match:
            data_type = type_match.group(1)
            position = type_match.end()
            params = re.match(r"\s*\(", line[position:])
            if params:
                inner, position = extract_parenthesized(line, position + params.end() - 1)
                data_type = f"{data_type}({inner})"

        rest = line[position:]
        # 코멘트 문자열 안의 키워드는 제약 조건으로 보지 않는다
        bare_rest = STRING_LITERAL_PATTERN.sub("''", rest)

        comment = None
        comment_match = COLUMN_COMMENT_PATTERN.search(rest)
        if comment_match:
            comment = unescape_literal(comment_match.group(1))

        return Column(
            name=name,
            data_type=data_type,
            is_primary_key=bool(INLINE_PRIMARY_KEY_PATTERN.search(bare_rest)),
            is_nullable=not NOT_NULL_PATTERN.search(bare_rest),
            comment=comment,
        )

    @staticmethod
    def _paren_names(text: str, start: int) -> list[str]:
        """start 이후 첫 괄호 안의 식별자 목록을 추출한다."""
        open_idx = text.find("(", start)
        if open_idx == -1:
            return []
        inner, _ = extract_parenthesized(text, open_idx)
        return [unquote_identifier(name) for name in split_top_level(inner)]

    def _parse_foreign_key_clause(
        self,
        text: str,
        start: int,
        source_parts: list[str],
        statement: str,
    ) -> Optional[ForeignKeyReference]:
        """FOREIGN KEY (...) REFERENCES t (...) 절을 파싱한다."""
        open_idx = text.find("(", start)
        if open_idx == -1:
            return None
        source_text, position = extract_parenthesized(text, open_idx)

        references = REFERENCES_PATTERN.match(text, position)
        if not references:
            return None
        target_parts = split_qualified_name(references.group(1))
        target_text, _ = extract_parenthesized(text, references.end())

        return ForeignKeyReference(
            source_parts=source_parts,
            source_columns=[unquote_identifier(c) for c in split_top_level(source_text)],
            target_parts=target_parts,
            target_columns=[unquote_identifier(c) for c in split_top_level(target_text)],
            statement=statement,
        )

    def _collect_alter_foreign_key(
        self, statement: str, context: _ParseContext
    ) -> None:
        """ALTER TABLE ... ADD FOREIGN KEY 문을 수집한다."""
        match = ALTER_FOREIGN_KEY_PATTERN.match(statement)
        source_parts = split_qualified_name(match.group(1))
        reference = self._parse_foreign_key_clause(
            statement, match.end(), source_parts, statement
        )
        if reference is None or not reference.target_parts:
            self._ignore(statement, "incomplete foreign key", context)
            return
        context.foreign_keys.append(reference)

    def _collect_column_tags(self, statement: str, context: _ParseContext) -> None:
        """ALTER TABLE ... MODIFY COLUMN ... SET TAG 문을 수집한다."""
        match = COLUMN_TAG_PATTERN.match(statement)
        tag_text, _ = extract_parenthesized(statement, match.end())
        context.column_tags.append(
            ColumnTagAssignment(
                table_parts=split_qualified_name(match.group(1)),
                column_name=unquote_identifier(match.group(2)),
                tags=parse_tag_names(tag_text),
                statement=statement,
            )
        )

    def _apply_column_tags(
        self, assignment: ColumnTagAssignment, context: _ParseContext
    ) -> None:
        """수집한 컬럼 태그를 해당 컬럼에 적용한다."""
        obj, _ = self._resolve_object(assignment.table_parts, context)
        column = obj.find_column(assignment.column_name) if obj else None
        if column is None:
            self._unresolved(
                f"Could not tag column {'.'.join(assignment.table_parts)}."
                f"{assignment.column_name} - column not found",
                assignment.statement,
                context,
            )
            return

        for tag in assignment.tags:
            if tag not in column.tags:
                column.tags.append(tag)

    def _resolve_foreign_key(
        self, reference: ForeignKeyReference, context: _ParseContext
    ) -> None:
        """외래 키 참조를 해석하여 컬럼 표시 및 관계를 생성한다."""
        source, source_tier = self._resolve_object(reference.source_parts, context)
        target, target_tier = self._resolve_object(reference.target_parts, context)

        source_name = ".".join(reference.source_parts)
        target_name = ".".join(reference.target_parts)
        if source is None or target is None:
            self._unresolved(
                f"Could not create relationship between {source_name} and "
                f"{target_name} - tables not found",
                reference.statement,
                context,
            )
            return

        for source_column, target_column in zip(
            reference.source_columns, reference.target_columns
        ):
            column = source.find_column(source_column)
            if column is None:
                continue
            referenced = target.find_column(target_column)
            column.mark_foreign_key(
                target.short_name, referenced.name if referenced else target_column
            )

        tier = max(source_tier, target_tier, key=TIER_ORDER.index)
        if tier is not ResolutionTier.EXACT:
            logger.info(
                "Resolved %s -> %s by %s match", source_name, target_name, tier.value
            )

        context.result.relationships.append(
            Relationship(
                source_id=source.id,
                target_id=target.id,
                cardinality=self._settings.default_cardinality,
                resolution=tier,
            )
        )

    @staticmethod
    def _resolve_object(
        parts: list[str], context: _ParseContext
    ) -> tuple[Optional[SchemaObject], Optional[ResolutionTier]]:
        """이름을 객체로 해석한다.

        짧은 이름 일치를 먼저 시도하고, 실패하면 전체 이름 일치 또는
        짧은 이름 접미사 일치로 대체한다. 서로 다른 스키마에 같은 이름의 테이블이
        있으면 결과가 모호할 수 있으므로 사용된 단계를 함께 반환한다.

        모든 객체의 짧은 이름이 색인되어 있으므로 대체 단계는 따옴표 이름 부분에
        점이 들어 있을 때만 쓰인다. 예를 들어 "DB"."S.X" 객체를 DB.S.X로 참조하면
        전체 이름 일치, S.X로 참조하면 접미사 일치가 된다.
        """
        if not parts:
            return None, None

        short_name = parts[-1].upper()
        obj = context.by_short_name.get(short_name)
        if obj is not None:
            return obj, ResolutionTier.EXACT

        full_name = ".".join(parts).upper()
        for candidate in context.result.objects:
            if candidate.qualified_name.upper() == full_name:
                return candidate, ResolutionTier.QUALIFIED

        for candidate in context.result.objects:
            if candidate.qualified_name.upper().endswith("." + short_name):
                return candidate, ResolutionTier.SUFFIX

        return None, None

    @staticmethod
    def _ignore(statement: str, reason: str, context: _ParseContext) -> None:
        """해석하지 못한 문장을 진단으로 기록한다."""
        logger.debug("Ignoring statement (%s): %.60s", reason, statement)
        context.result.diagnostics.append(
            Diagnostic(DiagnosticKind.STATEMENT_IGNORED, reason, statement)
        )

    @staticmethod
    def _unresolved(message: str, statement: str, context: _ParseContext) -> None:
        """해석되지 않은 참조를 진단으로 기록한다."""
        logger.warning(message)
        context.result.diagnostics.append(
            Diagnostic(DiagnosticKind.REFERENCE_UNRESOLVED, message, statement)
        )


def parse_ddl(ddl: str, settings: Optional[Settings] = None) -> ConversionResult:
    """DDL 텍스트를 스키마 그래프로 변환한다."""
    return DDLParser(settings).parse(ddl)
