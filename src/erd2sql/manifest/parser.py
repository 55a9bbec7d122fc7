"""YAML 매니페스트 파서 - models/sources 정의를 스키마 그래프로 변환."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from erd2sql.core.config import Settings, get_settings
from erd2sql.core.errors import ManifestSyntaxError
from erd2sql.core.models import (
    Column,
    ConversionResult,
    Diagnostic,
    DiagnosticKind,
    ObjectKind,
    Relationship,
    ResolutionTier,
    SchemaObject,
    new_id,
)

logger = logging.getLogger(__name__)

# ref('model') 호출 패턴
REF_PATTERN = re.compile(r"ref\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")

# source('source', 'table') 호출 패턴
SOURCE_PATTERN = re.compile(
    r"source\s*\(\s*['\"]([^'\"]+)['\"]\s*,\s*['\"]([^'\"]+)['\"]\s*\)"
)

# materialized 설정 -> 객체 종류 (그 외는 모두 TABLE)
MATERIALIZATION_KINDS = {
    "view": ObjectKind.VIEW,
    "materialized_view": ObjectKind.MATERIALIZED_VIEW,
}

PRIMARY_KEY_TESTS = ("unique", "primary_key")
FOREIGN_KEY_TESTS = ("relationships", "foreign_key")
NOT_NULL_TEST = "not_null"


@dataclass
class _ManifestContext:
    """parse() 호출 1회 동안만 유지되는 작업 상태."""

    result: ConversionResult = field(default_factory=ConversionResult)
    model_map: dict[str, SchemaObject] = field(default_factory=dict)
    source_map: dict[str, dict[str, SchemaObject]] = field(default_factory=dict)
    by_short_name: dict[str, SchemaObject] = field(default_factory=dict)


def column_tests(column: dict[str, Any]) -> list[Any]:
    """컬럼의 테스트 목록 (tests + data_tests)."""
    tests: list[Any] = []
    for key in ("tests", "data_tests"):
        value = column.get(key)
        if isinstance(value, list):
            tests.extend(value)
    return tests


def has_test(tests: list[Any], names: tuple[str, ...], allow_bare: bool = True) -> bool:
    """테스트 목록에 주어진 이름의 테스트가 있는지 확인한다.

    Args:
        tests: 컬럼 테스트 목록
        names: 찾을 테스트 이름들
        allow_bare: 문자열 테스트도 인정할지 여부 (False면 객체 키만 인정)

    Returns:
        존재 여부
    """
    for test in tests:
        if allow_bare and isinstance(test, str) and test in names:
            return True
        if isinstance(test, dict) and any(name in test for name in names):
            return True
    return False


def optional_text(value: Any) -> Optional[str]:
    """설명 값을 문자열로 정규화한다 (빈 값은 None)."""
    if value is None or value == "":
        return None
    return str(value)


def string_list(value: Any) -> list[str]:
    """문자열 리스트로 정규화한다 (순서 유지, 중복 제거)."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        text = str(item)
        if text not in items:
            items.append(text)
    return items


class ManifestParser:
    """YAML 매니페스트를 스키마 그래프로 변환하는 파서."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """파서 초기화.

        Args:
            settings: 변환 설정 (생략 시 기본 설정)
        """
        self._settings = settings or get_settings()

    def parse(self, text: str) -> ConversionResult:
        """매니페스트 텍스트를 파싱한다.

        Args:
            text: YAML 텍스트 (여러 문서 가능)

        Returns:
            객체/관계/진단을 담은 ConversionResult

        Raises:
            ManifestSyntaxError: YAML 문서로 해석할 수 없는 경우
        """
        documents = self._load_documents(text)
        context = _ManifestContext()

        logger.info("Parsing %d YAML documents", len(documents))

        # 1차: 모델/소스 객체 생성
        for doc in documents:
            if not isinstance(doc, dict):
                self._ignore(f"document is not a mapping: {type(doc).__name__}", context)
                continue
            for model in self._entries(doc, "models"):
                self._create_model(model, context)
            for source in self._entries(doc, "sources"):
                self._create_sources(source, context)

        # 2차: ref/source 참조 및 관계 테스트로 관계 생성
        for doc in documents:
            if not isinstance(doc, dict):
                continue
            for model in self._entries(doc, "models"):
                self._process_model_relationships(model, doc, context)
            tests = doc.get("tests")
            if isinstance(tests, list):
                self._process_relationship_tests(tests, context)

        result = context.result
        logger.info(
            "Created %d tables and %d relationships",
            len(result.objects),
            len(result.relationships),
        )
        return result

    @staticmethod
    def _load_documents(text: str) -> list[Any]:
        """YAML 텍스트를 문서 리스트로 로드한다.

        다중 문서 로드에 실패하면 단일 문서 로드를 한 번 더 시도한다.
        """
        try:
            return [doc for doc in yaml.safe_load_all(text) if doc is not None]
        except yaml.YAMLError as e:
            logger.warning("Error splitting YAML documents, retrying as single: %s", e)

        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ManifestSyntaxError(f"Failed to parse YAML content: {e}") from e
        return [doc] if doc is not None else []

    @staticmethod
    def _entries(doc: dict[str, Any], key: str) -> list[dict[str, Any]]:
        """문서의 models/sources 항목 중 매핑만 반환한다."""
        entries = doc.get(key)
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def _create_model(self, model: dict[str, Any], context: _ManifestContext) -> None:
        """모델 항목으로 객체를 생성한다."""
        name = model.get("name")
        if not name:
            self._ignore("model entry without name", context)
            return
        name = str(name)

        config = model.get("config") if isinstance(model.get("config"), dict) else {}
        materialized = str(config.get("materialized", "")).lower()
        kind = MATERIALIZATION_KINDS.get(materialized, ObjectKind.TABLE)

        columns = []
        for col in self._entries(model, "columns"):
            column = self._build_column(col)
            if column is None:
                continue
            column.is_foreign_key = has_test(
                column_tests(col), FOREIGN_KEY_TESTS, allow_bare=False
            )
            columns.append(column)

        obj = SchemaObject(
            name_parts=[name],
            kind=kind,
            columns=columns,
            comment=optional_text(model.get("description")),
            tags=string_list(model.get("tags")),
            id=new_id("model"),
        )
        context.model_map[name] = obj
        self._register(obj, context)

    def _create_sources(self, source: dict[str, Any], context: _ManifestContext) -> None:
        """소스의 테이블마다 객체를 생성한다."""
        source_name = source.get("name")
        tables = self._entries(source, "tables")
        if not source_name or not tables:
            return
        source_name = str(source_name)

        source_tables = context.source_map.setdefault(source_name, {})
        for table in tables:
            table_name = table.get("name")
            if not table_name:
                self._ignore(f"table without name in source {source_name}", context)
                continue
            table_name = str(table_name)

            # 소스 컬럼은 외래 키로 표시하지 않는다
            columns = []
            for col in self._entries(table, "columns"):
                column = self._build_column(col)
                if column is not None:
                    columns.append(column)

            obj = SchemaObject(
                name_parts=[source_name, table_name],
                kind=ObjectKind.TABLE,
                columns=columns,
                comment=optional_text(table.get("description"))
                or optional_text(source.get("description")),
                tags=string_list(
                    string_list(source.get("tags")) + string_list(table.get("tags"))
                ),
                id=new_id("source"),
            )
            source_tables[table_name] = obj
            self._register(obj, context)

    def _build_column(self, col: dict[str, Any]) -> Optional[Column]:
        """컬럼 항목으로 Column을 생성한다 (외래 키 표시는 호출자가 결정)."""
        name = col.get("name")
        if not name:
            return None

        tests = column_tests(col)
        return Column(
            name=str(name),
            data_type=str(col.get("data_type") or self._settings.default_data_type),
            is_primary_key=has_test(tests, PRIMARY_KEY_TESTS),
            is_nullable=not has_test(tests, (NOT_NULL_TEST,)),
            comment=optional_text(col.get("description")),
            tags=string_list(col.get("tags")),
        )

    def _process_model_relationships(
        self,
        model: dict[str, Any],
        doc: dict[str, Any],
        context: _ManifestContext,
    ) -> None:
        """모델의 SQL 본문과 컬럼 테스트로부터 관계를 생성한다."""
        name = model.get("name")
        source_obj = context.model_map.get(str(name)) if name else None
        if source_obj is None:
            return

        sql = doc.get("raw_sql") or model.get("raw_sql") or model.get("raw_code")
        if isinstance(sql, str) and sql:
            self._parse_references_from_sql(sql, source_obj, context)

        for col in self._entries(model, "columns"):
            for test in column_tests(col):
                if not isinstance(test, dict):
                    continue
                for key in FOREIGN_KEY_TESTS:
                    info = test.get(key)
                    if isinstance(info, dict):
                        self._apply_column_reference(
                            source_obj, str(col.get("name", "")), info, context
                        )

    def _apply_column_reference(
        self,
        source_obj: SchemaObject,
        column_name: str,
        info: dict[str, Any],
        context: _ManifestContext,
    ) -> None:
        """relationships/foreign_key 테스트의 to/field로 외래 키를 연결한다."""
        arguments = info.get("arguments")
        if isinstance(arguments, dict):
            info = arguments

        to = info.get("to")
        referenced_field = info.get("field")
        if not to or not referenced_field:
            return

        target = self._decode_reference(str(to), context)
        if target is None:
            self._unresolved(
                f"Could not resolve {to} referenced by "
                f"{source_obj.qualified_name}.{column_name}",
                context,
            )
            return

        self._add_relationship(source_obj, target, context)
        column = source_obj.find_column(column_name)
        if column is not None:
            column.mark_foreign_key(target.short_name, str(referenced_field))

    def _process_relationship_tests(
        self, tests: list[Any], context: _ManifestContext
    ) -> None:
        """문서 수준 relationships 테스트 (from/to)로 관계를 생성한다."""
        for test in tests:
            if not isinstance(test, dict):
                continue
            relationships = test.get("relationships")
            if not isinstance(relationships, dict):
                continue

            from_expr = relationships.get("from")
            to_expr = relationships.get("to")
            if not from_expr or not to_expr:
                continue

            source_obj = self._decode_reference(str(from_expr), context)
            target = self._decode_reference(str(to_expr), context)
            if source_obj is None or target is None:
                self._unresolved(
                    f"Could not create relationship between {from_expr} and {to_expr}",
                    context,
                )
                continue

            self._add_relationship(source_obj, target, context)

            column_name = relationships.get("column_name")
            referenced_field = relationships.get("field")
            column = source_obj.find_column(str(column_name)) if column_name else None
            if column is not None and referenced_field:
                column.mark_foreign_key(target.short_name, str(referenced_field))

    def _parse_references_from_sql(
        self, sql: str, source_obj: SchemaObject, context: _ManifestContext
    ) -> None:
        """SQL 본문의 ref()/source() 호출마다 관계를 생성한다.

        어떤 컬럼이 참조를 사용하는지는 알 수 없으므로 컬럼 수준 외래 키 정보는 만들지 않는다.
        """
        targets: list[SchemaObject] = []
        expressions: list[str] = []

        for match in SOURCE_PATTERN.finditer(sql):
            expressions.append(match.group(0))
        for match in REF_PATTERN.finditer(sql):
            expressions.append(match.group(0))

        for expression in expressions:
            target = self._decode_reference(expression, context)
            if target is None:
                self._unresolved(
                    f"Could not resolve {expression} in SQL of "
                    f"{source_obj.qualified_name}",
                    context,
                )
                continue
            if all(existing.id != target.id for existing in targets):
                targets.append(target)

        for target in targets:
            self._add_relationship(source_obj, target, context)

    @staticmethod
    def _decode_reference(
        expression: str, context: _ManifestContext
    ) -> Optional[SchemaObject]:
        """ref('model') 또는 source('src', 'table') 표현식을 객체로 해석한다."""
        ref_match = REF_PATTERN.search(expression)
        if ref_match:
            return context.model_map.get(ref_match.group(1))

        source_match = SOURCE_PATTERN.search(expression)
        if source_match:
            source_tables = context.source_map.get(source_match.group(1), {})
            return source_tables.get(source_match.group(2))

        return None

    def _add_relationship(
        self,
        source_obj: SchemaObject,
        target: SchemaObject,
        context: _ManifestContext,
    ) -> None:
        """두 객체 사이의 관계를 추가한다."""
        context.result.relationships.append(
            Relationship(
                source_id=source_obj.id,
                target_id=target.id,
                cardinality=self._settings.default_cardinality,
                resolution=ResolutionTier.EXACT,
            )
        )

    @staticmethod
    def _register(obj: SchemaObject, context: _ManifestContext) -> None:
        """객체를 결과에 추가한다.

        짧은 이름(대소문자 무시)이 같은 객체가 이미 있으면 그 자리를 대체하고,
        앞 객체를 가리키던 ref()/source() 항목도 새 객체를 가리키게 한다.
        """
        key = obj.short_name.upper()
        existing = context.by_short_name.get(key)
        objects = context.result.objects

        if existing is not None:
            objects[objects.index(existing)] = obj
            for name, target in context.model_map.items():
                if target is existing:
                    context.model_map[name] = obj
            for source_tables in context.source_map.values():
                for name, target in source_tables.items():
                    if target is existing:
                        source_tables[name] = obj

            message = (
                f"{obj.qualified_name} replaces earlier definition of "
                f"{existing.qualified_name}"
            )
            logger.warning(message)
            context.result.diagnostics.append(
                Diagnostic(DiagnosticKind.DUPLICATE_OBJECT, message)
            )
        else:
            objects.append(obj)

        context.by_short_name[key] = obj

    @staticmethod
    def _ignore(message: str, context: _ManifestContext) -> None:
        """해석할 수 없는 항목을 진단으로 기록한다."""
        logger.debug("Ignoring manifest entry: %s", message)
        context.result.diagnostics.append(
            Diagnostic(DiagnosticKind.STATEMENT_IGNORED, message)
        )

    @staticmethod
    def _unresolved(message: str, context: _ManifestContext) -> None:
        """해석되지 않은 참조를 진단으로 기록한다."""
        logger.warning(message)
        context.result.diagnostics.append(
            Diagnostic(DiagnosticKind.REFERENCE_UNRESOLVED, message)
        )


def parse_manifest(text: str, settings: Optional[Settings] = None) -> ConversionResult:
    """YAML 매니페스트 텍스트를 스키마 그래프로 변환한다."""
    return ManifestParser(settings).parse(text)
