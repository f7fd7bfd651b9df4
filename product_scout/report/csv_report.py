# product_scout/report/csv_report.py

"""
Экспорт найденных товаров в CSV с разделителем ``;``.

Поля записи: model, url, description, short_description и ссылки на
изображения через пробел. Символ-разделитель внутри значения заменяется на
``&#59;``; :func:`read_csv` выполняет обратную замену.
"""
import re
from pathlib import Path
from typing import Iterable, List

from product_scout.crawler.models import ProductRecord

SEPARATOR = ";"
ESCAPED_SEPARATOR = "&#59;"

# ";" that is not the tail of an escaped separator
_FIELD_SPLIT_RE = re.compile(r"(?<!&#59);")


def escape_field(value: str) -> str:
    return value.replace(SEPARATOR, ESCAPED_SEPARATOR)


def unescape_field(value: str) -> str:
    return value.replace(ESCAPED_SEPARATOR, SEPARATOR)


def format_record(record: ProductRecord) -> str:
    """Одна строка CSV без перевода строки."""
    fields = (
        record.model,
        record.url,
        record.description,
        record.short_description,
        " ".join(record.images),
    )
    return SEPARATOR.join(escape_field(f) for f in fields)


def render_csv(records: Iterable[ProductRecord], output_path: Path | str) -> Path:
    """
    Сохраняет записи в CSV по указанному пути, по одной записи на строку.

    :param records: записи в порядке обнаружения
    :param output_path: путь к CSV-файлу
    :return: Path сохранённого файла
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8', newline='') as f:
        for record in records:
            f.write(format_record(record) + "\n")

    return output


def parse_line(line: str) -> ProductRecord:
    model, url, description, short_description, images = (
        unescape_field(part) for part in _FIELD_SPLIT_RE.split(line.rstrip("\n"))
    )
    return ProductRecord(
        model=model,
        url=url,
        description=description,
        short_description=short_description,
        images=tuple(images.split()),
    )


def read_csv(path: Path | str) -> List[ProductRecord]:
    """Читает файл, записанный :func:`render_csv`, и восстанавливает записи."""
    with Path(path).open(encoding='utf-8') as f:
        return [parse_line(line) for line in f if line.strip()]
