# === FILE: product_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска ProductScout через командную строку.

Команды:
  crawl     Найти страницы товаров, сопоставить модели и сохранить результаты
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (только консоль, если не указан)
  --log-format FORMAT Формат логирования (e.g. "%(asctime)s %(levelname)s %(message)s")

Команда crawl опции:
  --base URL          Корневой URL сайта
  --models PATH       Файл со списком моделей
  --out PATH          Сохранить CSV (разделитель ';')
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --force             Очистить кэш и заново выполнить discovery
  --assisted          Оценивать страницы через OpenAI (нужен OPENAI_API_KEY)

Дополнительно:
  --version, -v       Показать версию ProductScout

Пример:
  product-scout crawl --base https://shop.example.com --models models.txt --out products.csv
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from product_scout import __version__
from product_scout.config import build_config
from product_scout.engine import start_scan
from product_scout.errors import ConfigurationError
from product_scout.logger import DEFAULT_FORMAT, init_logging
from product_scout.report.csv_report import render_csv
from product_scout.report.html_report import render_html
from product_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='ProductScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только консоль, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд ProductScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


def _load(config_path, overrides=None):
    try:
        return build_config(config_path, overrides)
    except (ValidationError, ConfigurationError, FileNotFoundError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--base', '-b', 'base_url', default=None, help='Корневой URL сайта')
@click.option(
    '--models', '-m', 'models_file',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Файл со списком моделей (по одной в строке)'
)
@click.option(
    '--out', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить CSV с найденными товарами'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию шаблон из пакета)'
)
@click.option('--force', is_flag=True, help='Очистить кэш и заново выполнить discovery')
@click.option('--assisted', 'use_assisted_scoring', is_flag=True,
              help='Оценивать страницы через внешний классификатор')
@click.option('--delay', 'delay_seconds', type=float, default=None, help='Пауза между страницами (секунд)')
@click.option('--threshold', 'score_threshold', type=int, default=None, help='Порог балла (0-30)')
@click.option('--ttl', 'cache_ttl_hours', type=float, default=None, help='Время жизни кэша (часов)')
@click.option(
    '--cache-db', 'cache_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Файл SQLite-кэша discovery'
)
@click.option('--concurrency', type=int, default=None, help='Число одновременно обрабатываемых страниц')
@click.option(
    '--openai-api-key', 'openai_api_key',
    envvar='OPENAI_API_KEY', default=None, show_envvar=True,
    help='Ключ API для --assisted'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def crawl(ctx, json_output, html_output, template_dir, pretty, **overrides):
    """Найти страницы товаров и сохранить записи."""
    # unset flags must not override values from the config file
    for flag in ('force', 'use_assisted_scoring'):
        overrides[flag] = overrides[flag] or None
    cfg = _load(ctx.obj['config_path'], overrides)
    to_stdout = not (cfg.output or json_output or html_output)
    if not to_stdout:
        click.echo(f'Starting crawl: {cfg.base}')

    try:
        report = asyncio.run(start_scan(cfg))
    except ConfigurationError as e:
        print_error(f'Ошибка конфигурации: {e}')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    # Без файлов вывода печатаем записи в stdout
    if to_stdout:
        indent = 2 if pretty else None
        click.echo(json.dumps([r.as_dict() for r in report.records], ensure_ascii=False, indent=indent))
        return

    if cfg.output:
        try:
            saved_csv = render_csv(report.records, cfg.output)
            click.echo(f'CSV export: {saved_csv} ({len(report.records)} records)')
        except OSError as e:
            print_error(f'Ошибка при сохранении CSV: {e}')

    if json_output:
        try:
            saved_json = render_json(report, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = _load(ctx.obj['config_path'])
    click.echo(cfg.model_dump_json(indent=2, exclude={'openai_api_key'}))


if __name__ == "__main__":
    cli()
