"""DDL 모듈 - 생성기, 파서, 토크나이저."""

from erd2sql.ddl.generator import DDLGenerator, generate
from erd2sql.ddl.parser import DDLParser, parse_ddl

__all__ = ["DDLGenerator", "DDLParser", "generate", "parse_ddl"]
