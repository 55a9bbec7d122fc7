"""erd2sql - 스키마 그래프와 SQL DDL / YAML 매니페스트 간 변환 엔진."""

from erd2sql.core.errors import Erd2SqlError, ManifestSyntaxError
from erd2sql.core.models import (
    Cardinality,
    Column,
    ConversionResult,
    Diagnostic,
    DiagnosticKind,
    ObjectKind,
    Relationship,
    ResolutionTier,
    SchemaObject,
)
from erd2sql.ddl.generator import generate
from erd2sql.ddl.parser import parse_ddl
from erd2sql.manifest.parser import parse_manifest

__version__ = "0.1.0"

__all__ = [
    "Cardinality",
    "Column",
    "ConversionResult",
    "Diagnostic",
    "DiagnosticKind",
    "Erd2SqlError",
    "ManifestSyntaxError",
    "ObjectKind",
    "Relationship",
    "ResolutionTier",
    "SchemaObject",
    "generate",
    "parse_ddl",
    "parse_manifest",
]
