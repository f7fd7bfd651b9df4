# === FILE: product_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации ProductScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
    model_validator,
)

from product_scout.errors import ConfigurationError

__all__ = ["CrawlerConfig", "load_config", "build_config", "read_config_data"]


class CrawlerConfig(BaseModel):
    """Конфигурация для одного запуска поиска товаров."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: HttpUrl = Field(..., description="Корневой URL сайта.")
    models_file: Path = Field(..., description="Файл со списком моделей (по одной в строке).")
    output: Optional[Path] = Field(None, description="Куда сохранить CSV с найденными товарами.")

    force: bool = Field(False, description="Очистить кэш и заново выполнить discovery.")
    use_assisted_scoring: bool = Field(False, description="Оценивать страницы через внешний классификатор.")
    delay_seconds: float = Field(1.0, ge=0, description="Пауза между запросами страниц (секунд).")
    score_threshold: int = Field(20, ge=0, le=30, description="Минимальный балл страницы товара.")
    cache_ttl_hours: float = Field(24.0, gt=0, description="Время жизни записей кэша (часов).")
    cache_path: Path = Field(Path("discovery_cache.db"), description="Файл SQLite-кэша discovery.")

    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field("ProductCrawler/2.1", min_length=1, description="Заголовок User-Agent.")
    retry_times: int = Field(0, ge=0, description="Число повторных попыток при 5xx/429.")
    concurrency: int = Field(1, ge=1, description="Число одновременно обрабатываемых страниц.")
    max_images: int = Field(10, ge=1, description="Максимум изображений на товар.")

    openai_api_key: Optional[str] = Field(None, repr=False, description="Ключ API классификатора.")
    openai_model: str = Field("gpt-4o-mini", min_length=1, description="Модель классификатора.")

    @field_validator("base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @model_validator(mode="after")
    def _check_inputs(self) -> CrawlerConfig:
        if not Path(self.models_file).is_file():
            # FileNotFoundError with filename
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(self.models_file))
        if self.use_assisted_scoring and not self.openai_api_key:
            raise ConfigurationError("Assisted scoring requested but no OpenAI API key is configured")
        return self

    @property
    def base(self) -> str:
        """Базовый URL строкой, без завершающего слеша."""
        return str(self.base_url).rstrip("/")


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def read_config_data(path: Union[str, Path, None]) -> dict[str, Any]:
    """Читает YAML/JSON-файл конфигурации и возвращает сырой словарь без валидации."""
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    При отсутствии файла конфига или файла моделей бросает FileNotFoundError.
    """
    data = read_config_data(path)
    try:
        return CrawlerConfig(**data)
    except ValidationError:
        raise


def build_config(
    path: Union[str, Path, None], overrides: Mapping[str, Any] | None = None
) -> CrawlerConfig:
    """
    Собирает конфигурацию из файла (указанного или configs/default.yaml, если он
    есть) и параметров командной строки.
    Значения ``None`` в overrides игнорируются, остальные перекрывают файл.
    """
    use_file = path is not None or _DEFAULT_CFG.exists()
    data: dict[str, Any] = read_config_data(path) if use_file else {}
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    return CrawlerConfig(**data)
