"""DDL 파서 테스트."""

from erd2sql.core.config import Settings
from erd2sql.core.models import Cardinality, DiagnosticKind, ObjectKind, ResolutionTier
from erd2sql.ddl.parser import DDLParser, parse_ddl, split_qualified_name

CUSTOMERS_DDL = (
    "CREATE OR REPLACE TABLE CUSTOMERS (\n"
    "  ID INTEGER NOT NULL,\n"
    "  NAME VARCHAR\n"
    ",\n"
    "  PRIMARY KEY (ID)\n"
    ");"
)

CHAIN_DDL = """
CREATE TABLE A (ID INT, B_ID INT);
CREATE TABLE B (ID INT, C_ID INT);
CREATE TABLE C (ID INT);
ALTER TABLE A ADD FOREIGN KEY (B_ID) REFERENCES B (ID);
ALTER TABLE B ADD CONSTRAINT FK_B_C FOREIGN KEY (C_ID) REFERENCES C (ID);
"""


class TestCreateTable:
    """CREATE 문 파싱 테스트."""

    def test_parse_simple_table(self):
        """단일 테이블과 컬럼 플래그를 복원해야 한다."""
        result = parse_ddl(CUSTOMERS_DDL)

        assert len(result.objects) == 1
        obj = result.objects[0]
        assert obj.short_name == "CUSTOMERS"
        assert obj.kind is ObjectKind.TABLE
        assert [col.name for col in obj.columns] == ["ID", "NAME"]

        id_col, name_col = obj.columns
        assert id_col.data_type == "INTEGER"
        assert id_col.is_primary_key is True
        assert id_col.is_nullable is False
        assert name_col.data_type == "VARCHAR"
        assert name_col.is_primary_key is False
        assert name_col.is_nullable is True
        assert result.relationships == []

    def test_parse_without_or_replace(self):
        """OR REPLACE 없는 CREATE TABLE도 인식해야 한다."""
        result = parse_ddl("create table orders (id int);")

        assert result.objects[0].short_name == "orders"

    def test_parse_if_not_exists(self):
        """IF NOT EXISTS 구문을 허용해야 한다."""
        result = parse_ddl("CREATE TABLE IF NOT EXISTS ORDERS (ID INT);")

        assert result.objects[0].name_parts == ["ORDERS"]

    def test_parse_three_part_name(self):
        """세 부분 이름의 각 부분을 독립적으로 인용 해제해야 한다."""
        result = parse_ddl('CREATE TABLE "My Db".PUBLIC."Order Items" (ID INT);')

        obj = result.objects[0]
        assert obj.name_parts == ["My Db", "PUBLIC", "Order Items"]
        assert obj.short_name == "Order Items"

    def test_parse_two_part_name(self):
        """두 부분 이름을 인식해야 한다."""
        result = parse_ddl("CREATE TABLE SALES.ORDERS (ID INT);")

        assert result.objects[0].name_parts == ["SALES", "ORDERS"]

    def test_parse_kinds(self):
        """다섯 가지 객체 종류를 모두 인식해야 한다."""
        ddl = """
        CREATE OR REPLACE VIEW V1 (A INT);
        CREATE OR REPLACE MATERIALIZED VIEW MV1 (A INT);
        CREATE OR REPLACE MATERIALIZED_VIEW MV2 (A INT);
        CREATE OR REPLACE DYNAMIC TABLE DT1 (A INT) TARGET_LAG = '1 minute';
        CREATE OR REPLACE ICEBERG_TABLE IT1 (A INT);
        """

        result = parse_ddl(ddl)

        assert [obj.kind for obj in result.objects] == [
            ObjectKind.VIEW,
            ObjectKind.MATERIALIZED_VIEW,
            ObjectKind.MATERIALIZED_VIEW,
            ObjectKind.DYNAMIC_TABLE,
            ObjectKind.ICEBERG_TABLE,
        ]

    def test_type_parameters_with_comma(self):
        """쉼표를 포함한 타입 인자가 컬럼을 나누지 않아야 한다."""
        result = parse_ddl("CREATE TABLE T (A NUMBER(10,2), B VARCHAR(20) NOT NULL);")

        columns = result.objects[0].columns
        assert [(col.name, col.data_type) for col in columns] == [
            ("A", "NUMBER(10,2)"),
            ("B", "VARCHAR(20)"),
        ]
        assert columns[1].is_nullable is False

    def test_type_parameters_before_newline(self):
        """타입 인자 쉼표 뒤에 줄바꿈이 와도 한 컬럼으로 유지해야 한다."""
        result = parse_ddl("CREATE TABLE T (\n  A NUMBER(10,\n2),\n  B INT\n);")

        columns = result.objects[0].columns
        assert len(columns) == 2
        assert columns[0].data_type == "NUMBER(10,\n2)"

    def test_quoted_column_name(self):
        """인용된 컬럼 이름을 복원해야 한다."""
        result = parse_ddl('CREATE TABLE T ("Order Id" INT, "table" VARCHAR);')

        assert [col.name for col in result.objects[0].columns] == ["Order Id", "table"]

    def test_column_without_type_uses_default(self):
        """타입이 없는 컬럼은 기본 타입을 사용해야 한다."""
        result = parse_ddl("CREATE VIEW V (A, B);")

        assert [col.data_type for col in result.objects[0].columns] == ["VARCHAR", "VARCHAR"]

    def test_column_comment_with_semicolon(self):
        """세미콜론이 포함된 컬럼 코멘트가 문장을 나누지 않아야 한다."""
        ddl = "CREATE TABLE T (\n  A VARCHAR COMMENT 'a; b',\n  B INT\n);\nCREATE TABLE U (X INT);"

        result = parse_ddl(ddl)

        assert [obj.short_name for obj in result.objects] == ["T", "U"]
        assert result.objects[0].columns[0].comment == "a; b"
        assert len(result.objects[0].columns) == 2

    def test_column_comment_unescaped(self):
        """이중화된 작은따옴표를 복원해야 한다."""
        result = parse_ddl("CREATE TABLE T (A VARCHAR COMMENT 'it''s');")

        assert result.objects[0].columns[0].comment == "it's"

    def test_not_null_inside_comment_is_ignored(self):
        """코멘트 안의 NOT NULL은 nullable 판정에 쓰지 않아야 한다."""
        result = parse_ddl("CREATE TABLE T (A VARCHAR COMMENT 'never NOT NULL');")

        assert result.objects[0].columns[0].is_nullable is True

    def test_table_comment_and_tags(self):
        """테이블 코멘트와 WITH TAG 절을 파싱해야 한다."""
        ddl = (
            "CREATE OR REPLACE TABLE T (\n  A INT COMMENT 'col'\n)"
            " COMMENT = 'Customer''s table' WITH TAG ('pii' = 'true', 'gold' = 'true');"
        )

        obj = parse_ddl(ddl).objects[0]

        assert obj.comment == "Customer's table"
        assert obj.tags == ["pii", "gold"]
        assert obj.columns[0].comment == "col"

    def test_column_level_comment_is_not_table_comment(self):
        """컬럼 코멘트를 테이블 코멘트로 오인하지 않아야 한다."""
        obj = parse_ddl("CREATE TABLE T (A INT COMMENT 'col');").objects[0]

        assert obj.comment is None

    def test_composite_primary_key(self):
        """테이블 수준 PRIMARY KEY 목록의 컬럼만 기본 키로 표시해야 한다."""
        ddl = (
            "CREATE TABLE L (\n  ORDER_ID INT,\n  LINE_NO INT,\n  SKU VARCHAR\n,\n"
            '  PRIMARY KEY (order_id, "LINE_NO")\n);'
        )

        columns = parse_ddl(ddl).objects[0].columns

        assert [col.is_primary_key for col in columns] == [True, True, False]

    def test_inline_primary_key(self):
        """컬럼 정의의 PRIMARY KEY를 인식해야 한다."""
        columns = parse_ddl("CREATE TABLE T (ID INT PRIMARY KEY, X INT);").objects[0].columns

        assert columns[0].is_primary_key is True
        assert columns[1].is_primary_key is False

    def test_unique_constraint_is_not_a_column(self):
        """UNIQUE KEY 제약은 컬럼으로 취급하지 않아야 한다."""
        columns = parse_ddl("CREATE TABLE T (A INT, UNIQUE KEY (A));").objects[0].columns

        assert [col.name for col in columns] == ["A"]

    def test_check_constraint_is_not_a_column(self):
        """CHECK 제약 줄은 컬럼으로 취급하지 않아야 한다."""
        ddl = "CREATE TABLE T (ID INT, CHECK (ID > 0), CONSTRAINT CK_ID CHECK(ID < 9));"

        columns = parse_ddl(ddl).objects[0].columns

        assert [col.name for col in columns] == ["ID"]

    def test_leading_comment_with_parenthesis(self):
        """앞선 주석의 괄호가 컬럼 블록 추출을 방해하지 않아야 한다."""
        ddl = "-- orders table (v2); legacy\nCREATE TABLE ORDERS (ID INT);"

        result = parse_ddl(ddl)

        assert [col.name for col in result.objects[0].columns] == ["ID"]

    def test_duplicate_short_name_replaces_earlier(self):
        """같은 짧은 이름을 다시 만들면 앞선 정의를 대체해야 한다."""
        ddl = "CREATE TABLE A.T (X INT);\nCREATE TABLE T (Y INT);\nCREATE TABLE U (Z INT);"

        result = parse_ddl(ddl)

        assert [obj.short_name for obj in result.objects] == ["T", "U"]
        assert result.objects[0].columns[0].name == "Y"
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.DUPLICATE_OBJECT]


class TestColumnTags:
    """컬럼 태그 복원 테스트."""

    def test_column_tags_from_alter_statement(self):
        """MODIFY COLUMN ... SET TAG 문으로 컬럼 태그를 복원해야 한다."""
        ddl = (
            "CREATE TABLE CUSTOMERS (EMAIL VARCHAR, ID INT);\n"
            "ALTER TABLE CUSTOMERS MODIFY COLUMN EMAIL SET TAG ('pii' = 'true', 'masked' = 'true');"
        )

        columns = parse_ddl(ddl).objects[0].columns

        assert columns[0].tags == ["pii", "masked"]
        assert columns[1].tags == []

    def test_column_tag_for_missing_column(self):
        """없는 컬럼에 대한 태그는 진단만 남겨야 한다."""
        ddl = (
            "CREATE TABLE T (A INT);\n"
            "ALTER TABLE T MODIFY COLUMN B SET TAG ('pii' = 'true');"
        )

        result = parse_ddl(ddl)

        assert result.objects[0].columns[0].tags == []
        assert result.diagnostics[0].kind is DiagnosticKind.REFERENCE_UNRESOLVED


class TestForeignKeys:
    """외래 키 해석 테스트."""

    def test_foreign_key_chain(self):
        """A→B→C 체인은 관계 2개와 올바른 컬럼 참조를 만들어야 한다."""
        result = parse_ddl(CHAIN_DDL)

        a, b, c = result.objects
        assert len(result.relationships) == 2

        b_id = a.find_column("B_ID")
        assert b_id.is_foreign_key is True
        assert b_id.referenced_table == "B"
        assert b_id.referenced_column == "ID"

        c_id = b.find_column("C_ID")
        assert c_id.is_foreign_key is True
        assert c_id.referenced_table == "C"
        assert c_id.referenced_column == "ID"

        first, second = result.relationships
        assert (first.source_id, first.target_id) == (a.id, b.id)
        assert (second.source_id, second.target_id) == (b.id, c.id)
        assert not any(col.is_foreign_key for col in c.columns)

    def test_relationship_records_resolution_tier(self):
        """관계에 사용된 매칭 단계가 기록되어야 한다."""
        result = parse_ddl(CHAIN_DDL)

        assert all(r.resolution is ResolutionTier.EXACT for r in result.relationships)
        assert all(r.cardinality.value == "one-to-many" for r in result.relationships)

    def test_qualified_tier_for_dotted_quoted_name(self):
        """점이 든 따옴표 이름을 전체 이름으로 참조하면 전체 이름 일치여야 한다."""
        ddl = (
            'CREATE TABLE "DB"."S.X" (ID INT);\n'
            "CREATE TABLE A (X_ID INT);\n"
            "ALTER TABLE A ADD FOREIGN KEY (X_ID) REFERENCES DB.S.X (ID);"
        )

        result = parse_ddl(ddl)

        assert [r.resolution for r in result.relationships] == [ResolutionTier.QUALIFIED]
        assert result.relationships[0].target_id == result.objects[0].id
        assert result.objects[1].find_column("X_ID").referenced_table == "S.X"
        assert result.diagnostics == []

    def test_suffix_tier_for_dotted_quoted_name(self):
        """점이 든 따옴표 이름을 뒷부분만으로 참조하면 접미사 일치여야 한다."""
        ddl = (
            'CREATE TABLE "DB"."S.X" (ID INT);\n'
            "CREATE TABLE A (X_ID INT);\n"
            "ALTER TABLE A ADD FOREIGN KEY (X_ID) REFERENCES S.X (ID);"
        )

        result = parse_ddl(ddl)

        assert [r.resolution for r in result.relationships] == [ResolutionTier.SUFFIX]
        assert result.relationships[0].target_id == result.objects[0].id

    def test_cardinality_from_settings(self):
        """관계의 카디널리티는 설정값을 따라야 한다."""
        settings = Settings(default_cardinality=Cardinality.MANY_TO_MANY)

        result = parse_ddl(CHAIN_DDL, settings)

        assert [r.cardinality for r in result.relationships] == [
            Cardinality.MANY_TO_MANY,
            Cardinality.MANY_TO_MANY,
        ]

    def test_unresolvable_foreign_key(self):
        """없는 테이블을 참조하는 외래 키는 예외 없이 버려야 한다."""
        ddl = (
            "CREATE TABLE ORDERS (ID INT, CUSTOMER_ID INT);\n"
            "ALTER TABLE ORDERS ADD FOREIGN KEY (CUSTOMER_ID) REFERENCES CUSTOMERS (ID);"
        )

        result = parse_ddl(ddl)

        assert result.relationships == []
        assert not any(col.is_foreign_key for col in result.objects[0].columns)
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.REFERENCE_UNRESOLVED]
        assert len(result.objects) == 1

    def test_qualified_names_resolve_by_short_name(self):
        """정규화된 이름의 외래 키는 짧은 이름으로 해석해야 한다."""
        ddl = (
            "CREATE TABLE DB.SALES.CUSTOMERS (ID INT);\n"
            "CREATE TABLE DB.SALES.ORDERS (ID INT, CUSTOMER_ID INT);\n"
            "ALTER TABLE DB.SALES.ORDERS\n  ADD FOREIGN KEY (CUSTOMER_ID)\n"
            "  REFERENCES OTHER.CUSTOMERS (ID);"
        )

        result = parse_ddl(ddl)

        assert len(result.relationships) == 1
        column = result.objects[1].find_column("CUSTOMER_ID")
        assert column.referenced_table == "CUSTOMERS"

    def test_composite_foreign_key_pairs_positionally(self):
        """복합 외래 키는 위치 순서대로 짝지어야 한다."""
        ddl = (
            "CREATE TABLE H (K1 INT, K2 INT);\n"
            "CREATE TABLE D (A INT, B INT);\n"
            "ALTER TABLE D ADD FOREIGN KEY (A, B) REFERENCES H (K1, K2);"
        )

        result = parse_ddl(ddl)

        d = result.objects[1]
        assert d.find_column("A").referenced_column == "K1"
        assert d.find_column("B").referenced_column == "K2"
        assert len(result.relationships) == 1

    def test_inline_foreign_key_constraint(self):
        """CREATE 본문의 FOREIGN KEY 제약도 해석해야 한다."""
        ddl = (
            "CREATE TABLE ORDERS (\n  ID INT,\n  CUSTOMER_ID INT,\n"
            "  CONSTRAINT FK_CUST FOREIGN KEY (CUSTOMER_ID) REFERENCES CUSTOMERS (ID)\n);\n"
            "CREATE TABLE CUSTOMERS (ID INT);"
        )

        result = parse_ddl(ddl)

        orders = result.objects[0]
        assert [col.name for col in orders.columns] == ["ID", "CUSTOMER_ID"]
        assert orders.find_column("CUSTOMER_ID").referenced_table == "CUSTOMERS"
        assert len(result.relationships) == 1

    def test_referenced_column_uses_target_spelling(self):
        """참조 컬럼은 대상 객체의 실제 컬럼 이름을 사용해야 한다."""
        ddl = (
            'CREATE TABLE P ("Key" INT);\n'
            "CREATE TABLE Q (P_KEY INT);\n"
            'ALTER TABLE Q ADD FOREIGN KEY (p_key) REFERENCES P ("KEY");'
        )

        column = parse_ddl(ddl).objects[1].columns[0]

        assert column.is_foreign_key is True
        assert column.referenced_column == "Key"


class TestBestEffort:
    """비정상 입력 처리 테스트."""

    def test_unrecognized_statements_are_ignored(self):
        """인식하지 못한 문장은 건너뛰어야 한다."""
        ddl = "USE SCHEMA SALES;\nGRANT SELECT ON T TO ROLE R;\nCREATE TABLE T (A INT);"

        result = parse_ddl(ddl)

        assert len(result.objects) == 1
        assert [d.kind for d in result.diagnostics] == [
            DiagnosticKind.STATEMENT_IGNORED,
            DiagnosticKind.STATEMENT_IGNORED,
        ]

    def test_garbage_input_does_not_raise(self):
        """해석할 수 없는 입력도 예외 없이 빈 결과를 반환해야 한다."""
        result = parse_ddl("this is not sql ((( ;")

        assert result.objects == []
        assert result.relationships == []

    def test_empty_input(self):
        """빈 입력은 빈 결과를 반환해야 한다."""
        result = parse_ddl("")

        assert result.objects == []
        assert result.diagnostics == []

    def test_parser_instance_has_no_state_between_calls(self):
        """같은 파서 인스턴스를 재사용해도 결과가 섞이지 않아야 한다."""
        parser = DDLParser()

        first = parser.parse("CREATE TABLE A (X INT);")
        second = parser.parse("CREATE TABLE B (Y INT);")

        assert [obj.short_name for obj in first.objects] == ["A"]
        assert [obj.short_name for obj in second.objects] == ["B"]

    def test_new_ids_on_every_parse(self):
        """같은 텍스트를 다시 파싱하면 새 id가 부여되어야 한다."""
        first = parse_ddl(CUSTOMERS_DDL).objects[0]
        second = parse_ddl(CUSTOMERS_DDL).objects[0]

        assert first.id != second.id
        assert first.columns[0].id != second.columns[0].id


class TestSplitQualifiedName:
    """정규화된 이름 분리 테스트."""

    def test_mixed_quoting(self):
        """부분마다 다른 인용 방식을 허용해야 한다."""
        assert split_qualified_name('DB."My Schema".T') == ["DB", "My Schema", "T"]

    def test_fully_quoted_dotted_name(self):
        """전체가 인용된 점 이름은 부분으로 나눠야 한다."""
        assert split_qualified_name('"DB.SCHEMA.T"') == ["DB", "SCHEMA", "T"]
