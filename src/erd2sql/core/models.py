"""Core 데이터 모델 정의 - 스키마 그래프."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ObjectKind(Enum):
    """스키마 객체 종류."""

    TABLE = "TABLE"
    VIEW = "VIEW"
    MATERIALIZED_VIEW = "MATERIALIZED_VIEW"
    DYNAMIC_TABLE = "DYNAMIC_TABLE"
    ICEBERG_TABLE = "ICEBERG_TABLE"

    @property
    def keyword(self) -> str:
        """DDL에 출력되는 키워드 (예: MATERIALIZED VIEW)."""
        return self.value.replace("_", " ")

    @classmethod
    def from_keyword(cls, keyword: str) -> "ObjectKind":
        """DDL 키워드를 ObjectKind로 변환한다.

        공백/언더스코어 표기를 모두 허용하며 대소문자를 구분하지 않는다.

        Args:
            keyword: DDL 키워드 (예: "materialized view", "DYNAMIC_TABLE")

        Returns:
            ObjectKind

        Raises:
            ValueError: 알 수 없는 키워드인 경우
        """
        normalized = "_".join(keyword.upper().replace("_", " ").split())
        return cls(normalized)


class Cardinality(Enum):
    """관계 카디널리티."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"


class ResolutionTier(Enum):
    """참조 해석에 사용된 매칭 단계."""

    EXACT = "exact"
    QUALIFIED = "qualified"
    SUFFIX = "suffix"


class DiagnosticKind(Enum):
    """변환 중 발생한 비치명적 진단 종류."""

    STATEMENT_IGNORED = "statement_ignored"
    REFERENCE_UNRESOLVED = "reference_unresolved"
    DUPLICATE_OBJECT = "duplicate_object"


def new_id(prefix: str = "") -> str:
    """새 식별자를 생성한다."""
    value = str(uuid.uuid4())
    return f"{prefix}-{value}" if prefix else value


@dataclass
class Column:
    """스키마 객체의 컬럼."""

    name: str
    data_type: str = "VARCHAR"
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_nullable: bool = True
    referenced_table: Optional[str] = None
    referenced_column: Optional[str] = None
    comment: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def mark_foreign_key(self, table: str, column: str) -> None:
        """컬럼을 외래 키로 표시한다."""
        self.is_foreign_key = True
        self.referenced_table = table
        self.referenced_column = column


@dataclass
class SchemaObject:
    """테이블/뷰 등 스키마 객체 (그래프 노드)."""

    name_parts: list[str]
    kind: ObjectKind = ObjectKind.TABLE
    columns: list[Column] = field(default_factory=list)
    comment: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: new_id("table"))

    @property
    def short_name(self) -> str:
        """정규화된 이름의 마지막 부분 (참조 해석 키)."""
        return self.name_parts[-1] if self.name_parts else ""

    @property
    def qualified_name(self) -> str:
        """점으로 연결된 전체 이름."""
        return ".".join(self.name_parts)

    @property
    def primary_key_columns(self) -> list[Column]:
        """기본 키 컬럼 목록 (컬럼 순서 유지)."""
        return [col for col in self.columns if col.is_primary_key]

    def find_column(self, name: str) -> Optional[Column]:
        """이름으로 컬럼을 찾는다 (대소문자 무시)."""
        target = name.upper()
        for col in self.columns:
            if col.name.upper() == target:
                return col
        return None


@dataclass
class Relationship:
    """두 스키마 객체 사이의 관계 (그래프 엣지)."""

    source_id: str
    target_id: str
    cardinality: Cardinality = Cardinality.ONE_TO_MANY
    resolution: Optional[ResolutionTier] = None
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"e{self.source_id}-{self.target_id}-{uuid.uuid4()}"


@dataclass
class Diagnostic:
    """변환 중 기록된 비치명적 진단."""

    kind: DiagnosticKind
    message: str
    statement: str = ""


@dataclass
class ConversionResult:
    """파서 실행 결과."""

    objects: list[SchemaObject] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def find_object(self, short_name: str) -> Optional[SchemaObject]:
        """짧은 이름으로 객체를 찾는다 (대소문자 무시)."""
        target = short_name.upper()
        for obj in self.objects:
            if obj.short_name.upper() == target:
                return obj
        return None

    def to_report(self) -> str:
        """변환 결과를 리포트 문자열로 변환.

        Returns:
            리포트 문자열
        """
        lines = [
            "=== 스키마 변환 결과 ===",
            f"객체: {len(self.objects)}개",
            f"관계: {len(self.relationships)}개",
            f"진단: {len(self.diagnostics)}건",
        ]

        if self.diagnostics:
            lines.append("\n=== 진단 목록 ===")
            for diagnostic in self.diagnostics:
                lines.append(f"  - [{diagnostic.kind.value}] {diagnostic.message}")

        return "\n".join(lines)
