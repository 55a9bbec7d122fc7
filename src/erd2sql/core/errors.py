"""스키마 변환 예외 정의."""


class Erd2SqlError(Exception):
    """erd2sql 기본 예외."""

    pass


class ManifestSyntaxError(Erd2SqlError):
    """YAML 매니페스트를 문서로 해석할 수 없을 때 발생하는 치명적 에러."""

    pass
