"""테이블 템플릿 - Kimball/Data Vault 모델링용 시작 테이블."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from erd2sql.core.models import Column, SchemaObject


class TemplateCategory(Enum):
    """템플릿 분류."""

    KIMBALL = "Kimball"
    DATA_VAULT = "Data Vault"
    OTHER = "Other"


@dataclass(frozen=True)
class ColumnSpec:
    """템플릿 컬럼 정의. name의 {table}은 테이블 이름으로 치환된다."""

    name: str
    data_type: str
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_nullable: bool = True
    referenced_table: Optional[str] = None
    referenced_column: Optional[str] = None


@dataclass(frozen=True)
class TableTemplate:
    """테이블 템플릿."""

    name: str
    description: str
    category: TemplateCategory
    columns: tuple[ColumnSpec, ...]

    def build_columns(self, table_name: str) -> list[Column]:
        """테이블 이름에 맞춰 새 컬럼 목록을 생성한다."""
        return [
            Column(
                name=spec.name.format(table=table_name),
                data_type=spec.data_type,
                is_primary_key=spec.is_primary_key,
                is_foreign_key=spec.is_foreign_key,
                is_nullable=spec.is_nullable,
                referenced_table=spec.referenced_table,
                referenced_column=spec.referenced_column,
            )
            for spec in self.columns
        ]

    def build(self, table_name: str) -> SchemaObject:
        """템플릿으로 새 스키마 객체를 생성한다."""
        return SchemaObject(
            name_parts=[table_name],
            columns=self.build_columns(table_name),
            comment=self.description,
        )


KIMBALL_DIMENSION_TYPE1 = TableTemplate(
    name="Kimball Dimension (Type 1)",
    description="Standard dimension table with Type 1 SCD (no history)",
    category=TemplateCategory.KIMBALL,
    columns=(
        ColumnSpec("{table}_KEY", "INTEGER", is_primary_key=True, is_nullable=False),
        ColumnSpec("BUSINESS_KEY", "VARCHAR", is_nullable=False),
        ColumnSpec("DESCRIPTION", "VARCHAR"),
        ColumnSpec("SOURCE_SYSTEM", "VARCHAR"),
        ColumnSpec("CREATED_DATE", "TIMESTAMP_NTZ", is_nullable=False),
        ColumnSpec("UPDATED_DATE", "TIMESTAMP_NTZ"),
    ),
)

KIMBALL_DIMENSION_TYPE2 = TableTemplate(
    name="Kimball Dimension (Type 2)",
    description="Dimension table with Type 2 SCD (historical tracking)",
    category=TemplateCategory.KIMBALL,
    columns=(
        ColumnSpec("{table}_KEY", "INTEGER", is_primary_key=True, is_nullable=False),
        ColumnSpec("BUSINESS_KEY", "VARCHAR", is_nullable=False),
        ColumnSpec("DESCRIPTION", "VARCHAR"),
        ColumnSpec("SOURCE_SYSTEM", "VARCHAR"),
        ColumnSpec("EFFECTIVE_FROM", "TIMESTAMP_NTZ", is_nullable=False),
        ColumnSpec("EFFECTIVE_TO", "TIMESTAMP_NTZ"),
        ColumnSpec("IS_CURRENT", "BOOLEAN", is_nullable=False),
        ColumnSpec("CREATED_DATE", "TIMESTAMP_NTZ", is_nullable=False),
        ColumnSpec("UPDATED_DATE", "TIMESTAMP_NTZ"),
    ),
)

KIMBALL_FACT_TABLE = TableTemplate(
    name="Kimball Fact Table",
    description="Standard fact table with measures and dimension keys",
    category=TemplateCategory.KIMBALL,
    columns=(
        ColumnSpec("{table}_KEY", "INTEGER", is_primary_key=True, is_nullable=False),
        ColumnSpec(
            "DATE_KEY", "INTEGER", False, True, False, "DATE_DIM", "DATE_KEY"
        ),
        ColumnSpec(
            "CUSTOMER_KEY", "INTEGER", False, True, False, "CUSTOMER_DIM", "CUSTOMER_KEY"
        ),
        ColumnSpec(
            "PRODUCT_KEY", "INTEGER", False, True, False, "PRODUCT_DIM", "PRODUCT_KEY"
        ),
        ColumnSpec("TRANSACTION_DATE", "TIMESTAMP_NTZ", is_nullable=False),
        ColumnSpec("QUANTITY", "INTEGER", is_nullable=False),
        ColumnSpec("AMOUNT", "DECIMAL", is_nullable=False),
        ColumnSpec("COST", "DECIMAL"),
        ColumnSpec("SOURCE_SYSTEM", "VARCHAR"),
        ColumnSpec("CREATED_DATE", "TIMESTAMP_NTZ", is_nullable=False),
    ),
)

DATA_VAULT_HUB = TableTemplate(
    name="Data Vault Hub",
    description="Hub table containing business keys",
    category=TemplateCategory.DATA_VAULT,
    columns=(
        ColumnSpec("HUB_KEY", "VARCHAR", is_primary_key=True, is_nullable=False),
        ColumnSpec("BUSINESS_KEY", "VARCHAR", is_nullable=False),
        ColumnSpec("RECORD_SOURCE", "VARCHAR", is_nullable=False),
        ColumnSpec("LOAD_DATE", "TIMESTAMP_NTZ", is_nullable=False),
    ),
)

DATA_VAULT_LINK = TableTemplate(
    name="Data Vault Link",
    description="Link table connecting business concepts",
    category=TemplateCategory.DATA_VAULT,
    columns=(
        ColumnSpec("LINK_KEY", "VARCHAR", is_primary_key=True, is_nullable=False),
        ColumnSpec("HUB1_KEY", "VARCHAR", False, True, False, "HUB1", "HUB_KEY"),
        ColumnSpec("HUB2_KEY", "VARCHAR", False, True, False, "HUB2", "HUB_KEY"),
        ColumnSpec("RECORD_SOURCE", "VARCHAR", is_nullable=False),
        ColumnSpec("LOAD_DATE", "TIMESTAMP_NTZ", is_nullable=False),
    ),
)

DATA_VAULT_SATELLITE = TableTemplate(
    name="Data Vault Satellite",
    description="Satellite table containing context and descriptive attributes",
    category=TemplateCategory.DATA_VAULT,
    columns=(
        ColumnSpec("SATELLITE_KEY", "VARCHAR", is_primary_key=True, is_nullable=False),
        ColumnSpec("PARENT_KEY", "VARCHAR", False, True, False, "HUB/LINK", "KEY"),
        ColumnSpec("LOAD_DATE", "TIMESTAMP_NTZ", is_nullable=False),
        ColumnSpec("END_DATE", "TIMESTAMP_NTZ"),
        ColumnSpec("RECORD_SOURCE", "VARCHAR", is_nullable=False),
        ColumnSpec("HASH_DIFF", "VARCHAR", is_nullable=False),
        ColumnSpec("IS_CURRENT", "BOOLEAN", is_nullable=False),
        ColumnSpec("ATTRIBUTE1", "VARCHAR"),
        ColumnSpec("ATTRIBUTE2", "VARCHAR"),
    ),
)

TABLE_TEMPLATES: list[TableTemplate] = [
    KIMBALL_DIMENSION_TYPE1,
    KIMBALL_DIMENSION_TYPE2,
    KIMBALL_FACT_TABLE,
    DATA_VAULT_HUB,
    DATA_VAULT_LINK,
    DATA_VAULT_SATELLITE,
]


def get_template(name: str) -> TableTemplate:
    """이름으로 템플릿을 찾는다.

    Raises:
        KeyError: 해당 이름의 템플릿이 없는 경우
    """
    for template in TABLE_TEMPLATES:
        if template.name == name:
            return template
    raise KeyError(name)
