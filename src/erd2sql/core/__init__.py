"""Core 모듈 - 스키마 그래프 모델, 설정, 식별자 포맷터."""
