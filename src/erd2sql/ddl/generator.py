"""DDL 생성기 - 스키마 그래프를 SQL DDL 텍스트로 변환."""

import logging
from typing import Optional

from erd2sql.core.config import Settings, get_settings
from erd2sql.core.identifiers import (
    escape_literal,
    format_identifier,
    format_qualified_name,
)
from erd2sql.core.models import Column, ObjectKind, Relationship, SchemaObject

logger = logging.getLogger(__name__)


class DDLGenerator:
    """스키마 그래프로부터 DDL을 생성하는 클래스."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """생성기 초기화.

        Args:
            settings: 변환 설정 (생략 시 기본 설정)
        """
        self._settings = settings or get_settings()

    def generate(
        self,
        objects: list[SchemaObject],
        relationships: Optional[list[Relationship]] = None,
    ) -> str:
        """스키마 객체 목록의 DDL을 생성한다.

        CREATE 문과 컬럼 태그 문을 객체 순서대로 출력한 뒤,
        모든 외래 키 문을 마지막에 출력하여 전방 참조가 실행 순서를 깨지 않게 한다.
        컬럼 단위 연결 정보는 Column의 referenced_table/referenced_column에서 읽으며
        relationships는 진단 로그에만 사용한다.

        Args:
            objects: 스키마 객체 리스트
            relationships: 관계 리스트

        Returns:
            DDL 텍스트
        """
        statements: list[str] = []

        for obj in objects:
            statements.append(self._generate_object_ddl(obj))
            statements.extend(self._generate_column_tag_ddl(obj))

        by_short_name: dict[str, SchemaObject] = {}
        for obj in objects:
            by_short_name.setdefault(obj.short_name.upper(), obj)

        fk_count = 0
        for obj in objects:
            for column in obj.columns:
                if (
                    column.is_foreign_key
                    and column.referenced_table
                    and column.referenced_column
                ):
                    statements.append(
                        self._generate_foreign_key_ddl(obj, column, by_short_name)
                    )
                    fk_count += 1

        logger.debug(
            "Generated DDL for %d objects, %d foreign keys (%d relationships given)",
            len(objects),
            fk_count,
            len(relationships or []),
        )
        return "".join(statement + "\n\n" for statement in statements)

    def _generate_object_ddl(self, obj: SchemaObject) -> str:
        """단일 객체의 CREATE 문을 생성한다."""
        ddl = (
            f"CREATE OR REPLACE {obj.kind.keyword} "
            f"{format_qualified_name(obj.name_parts)} (\n"
        )
        ddl += ",\n".join(self._column_definition(col) for col in obj.columns)

        primary_keys = obj.primary_key_columns
        if primary_keys:
            pk_columns = ", ".join(format_identifier(col.name) for col in primary_keys)
            ddl += f"\n,\n  PRIMARY KEY ({pk_columns})"

        ddl += "\n)"

        if obj.comment:
            ddl += f" COMMENT = '{escape_literal(obj.comment)}'"

        ddl += self._kind_clause(obj)

        if obj.tags:
            ddl += f" WITH TAG ({self._tag_list(obj.tags)})"

        return ddl + ";"

    def _column_definition(self, column: Column) -> str:
        """컬럼 정의 한 줄을 생성한다."""
        data_type = column.data_type or self._settings.default_data_type
        definition = f"  {format_identifier(column.name)} {data_type}"

        if not column.is_nullable:
            definition += " NOT NULL"

        if column.comment:
            definition += f" COMMENT '{escape_literal(column.comment)}'"

        return definition

    def _kind_clause(self, obj: SchemaObject) -> str:
        """객체 종류별 후행 절을 생성한다."""
        if obj.kind is ObjectKind.DYNAMIC_TABLE:
            lag = escape_literal(self._settings.dynamic_table_target_lag)
            return f" TARGET_LAG = '{lag}'"
        if obj.kind is ObjectKind.ICEBERG_TABLE:
            catalog = escape_literal(self._settings.iceberg_catalog)
            volume = escape_literal(self._settings.iceberg_external_volume)
            location = escape_literal(obj.short_name.lower())
            return (
                f" CATALOG = '{catalog}'"
                f" EXTERNAL_VOLUME = '{volume}'"
                f" BASE_LOCATION = '{location}'"
            )
        return ""

    def _generate_column_tag_ddl(self, obj: SchemaObject) -> list[str]:
        """태그가 있는 컬럼마다 ALTER ... SET TAG 문을 생성한다."""
        table_name = format_qualified_name(obj.name_parts)
        return [
            f"ALTER TABLE {table_name} MODIFY COLUMN {format_identifier(col.name)} "
            f"SET TAG ({self._tag_list(col.tags)});"
            for col in obj.columns
            if col.tags
        ]

    def _generate_foreign_key_ddl(
        self,
        obj: SchemaObject,
        column: Column,
        by_short_name: dict[str, SchemaObject],
    ) -> str:
        """외래 키 ALTER 문을 생성한다."""
        referenced_table = column.referenced_table or ""
        target = by_short_name.get(referenced_table.upper())
        if target is None and "." in referenced_table:
            target = by_short_name.get(referenced_table.split(".")[-1].upper())

        if target is not None:
            target_name = format_qualified_name(target.name_parts)
        else:
            target_name = format_identifier(referenced_table)

        return (
            f"ALTER TABLE {format_qualified_name(obj.name_parts)}\n"
            f"  ADD FOREIGN KEY ({format_identifier(column.name)})\n"
            f"  REFERENCES {target_name} "
            f"({format_identifier(column.referenced_column or '')});"
        )

    @staticmethod
    def _tag_list(tags: list[str]) -> str:
        """태그 목록을 'tag' = 'true' 형식으로 변환한다."""
        return ", ".join(f"'{escape_literal(tag)}' = 'true'" for tag in tags)


def generate(
    objects: list[SchemaObject],
    relationships: Optional[list[Relationship]] = None,
    settings: Optional[Settings] = None,
) -> str:
    """스키마 그래프를 DDL 텍스트로 변환한다."""
    return DDLGenerator(settings).generate(objects, relationships)
