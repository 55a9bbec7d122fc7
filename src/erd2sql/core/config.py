"""애플리케이션 설정 모듈."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from erd2sql.core.models import Cardinality


class Settings(BaseSettings):
    """스키마 변환 설정."""

    default_data_type: str = Field(
        default="VARCHAR", description="타입이 지정되지 않은 컬럼의 기본 데이터 타입"
    )

    # DYNAMIC TABLE / ICEBERG TABLE 생성 옵션
    dynamic_table_target_lag: str = Field(
        default="1 minute", description="DYNAMIC TABLE의 TARGET_LAG"
    )
    iceberg_catalog: str = Field(default="SNOWFLAKE", description="ICEBERG 카탈로그")
    iceberg_external_volume: str = Field(
        default="ICEBERG_VOLUME", description="ICEBERG 외부 볼륨"
    )

    default_cardinality: Cardinality = Field(
        default=Cardinality.ONE_TO_MANY,
        description="파서가 생성하는 관계의 기본 카디널리티",
    )

    model_config = {
        "env_prefix": "ERD2SQL_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """캐시된 기본 설정을 반환한다."""
    return Settings()
