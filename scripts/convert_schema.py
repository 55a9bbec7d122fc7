#!/usr/bin/env python
"""스키마 변환 실행 스크립트.

사용법:
    python scripts/convert_schema.py schema.sql               # DDL 파싱 후 요약 + DDL 재생성
    python scripts/convert_schema.py models.yml --format yaml # YAML 매니페스트 파싱
    python scripts/convert_schema.py schema.sql --verbose     # 진단 로그 출력
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

# 프로젝트 루트 경로 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from erd2sql import ConversionResult, ManifestSyntaxError, generate, parse_ddl, parse_manifest
from erd2sql.core.config import Settings

console = Console()


def detect_format(path: Path) -> str:
    """파일 확장자로 입력 형식을 추정한다."""
    return "yaml" if path.suffix.lower() in (".yml", ".yaml") else "ddl"


def build_summary_table(result: ConversionResult) -> Table:
    """객체/컬럼 요약 테이블을 생성한다."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("객체", style="cyan")
    table.add_column("종류", width=18)
    table.add_column("컬럼", justify="right")
    table.add_column("PK")
    table.add_column("FK")

    for obj in result.objects:
        pk = ", ".join(col.name for col in obj.primary_key_columns) or "-"
        fk = ", ".join(
            f"{col.name} → {col.referenced_table}.{col.referenced_column}"
            for col in obj.columns
            if col.is_foreign_key and col.referenced_table
        ) or "-"
        table.add_row(obj.qualified_name, obj.kind.value, str(len(obj.columns)), pk, fk)

    return table


def build_diagnostic_table(result: ConversionResult) -> Table:
    """진단 목록 테이블을 생성한다."""
    table = Table(show_header=True, header_style="bold red")
    table.add_column("종류", width=22)
    table.add_column("내용")
    for diagnostic in result.diagnostics:
        table.add_row(diagnostic.kind.value, diagnostic.message)
    return table


def run(path: Path, input_format: str, settings: Settings) -> ConversionResult:
    """파일을 파싱하고 결과를 출력한다."""
    text = path.read_text(encoding="utf-8")

    console.print(f"\n[green]📂 입력 파일:[/green] {path} ([yellow]{input_format}[/yellow])")

    if input_format == "yaml":
        result = parse_manifest(text, settings)
    else:
        result = parse_ddl(text, settings)

    console.print(Panel(
        build_summary_table(result),
        title=f"[bold blue]객체 {len(result.objects)}개 / 관계 {len(result.relationships)}개[/bold blue]",
        border_style="green",
    ))

    if result.diagnostics:
        console.print(Panel(
            build_diagnostic_table(result),
            title="[bold red]진단 목록[/bold red]",
            border_style="red",
        ))

    ddl = generate(result.objects, result.relationships, settings)
    console.print(Panel(
        Syntax(ddl, "sql", word_wrap=True),
        title="[bold blue]생성된 DDL[/bold blue]",
        border_style="blue",
    ))
    return result


def main():
    """메인 함수."""
    parser = argparse.ArgumentParser(
        description="스키마 그래프 변환 (DDL / YAML 매니페스트)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예시:
  python scripts/convert_schema.py samples/schema.sql
  python scripts/convert_schema.py samples/models.yml --verbose
        """,
    )
    parser.add_argument("path", type=Path, help="입력 파일 경로")
    parser.add_argument(
        "--format",
        choices=["ddl", "yaml"],
        default=None,
        help="입력 형식 (기본값: 확장자로 추정)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="파서 로그 출력",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    if not args.path.exists():
        console.print(f"[red]❌ 파일을 찾을 수 없습니다: {args.path}[/red]")
        sys.exit(1)

    input_format = args.format or detect_format(args.path)

    try:
        run(args.path, input_format, Settings())
    except ManifestSyntaxError as e:
        console.print(f"\n[red]❌ 매니페스트 파싱 실패: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
