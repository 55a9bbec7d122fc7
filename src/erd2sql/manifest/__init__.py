"""YAML 매니페스트 모듈."""

from erd2sql.manifest.parser import ManifestParser, parse_manifest

__all__ = ["ManifestParser", "parse_manifest"]
