"""
Конфигурация клиента
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import toml

logger = logging.getLogger(__name__)

DEBUG_ENV = "OPENAPI_CLIENT_DEBUG"


def debug_enabled() -> bool:
    """Отладка включена, если переменная окружения задана и не равна 0"""
    return os.environ.get(DEBUG_ENV, "").strip() not in ("", "0")


DEBUG = debug_enabled()

CONFIG_FILE = "openapi.toml"


@dataclass
class OpenApiConfig:
    """Конфигурация OpenAPI клиента"""

    url: Optional[str] = None
    base_url: Optional[str] = None
    coerce: Optional[str] = None
    timeout: int = 30

    @classmethod
    def from_file(
        cls, config_path: str = CONFIG_FILE, search_dir: str = None
    ) -> Optional["OpenApiConfig"]:
        """Загрузка конфигурации из файла"""
        # Если указана директория для поиска, ищем конфиг там
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, CONFIG_FILE)
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as exc:
            logger.warning(f"Cannot read {config_path}: {exc}")
            return None

        return cls(
            url=config_data.get("url"),
            base_url=config_data.get("base_url"),
            coerce=config_data.get("coerce"),
            timeout=int(config_data.get("timeout", 30)),
        )

    def save_to_file(self, config_path: str = CONFIG_FILE) -> None:
        """Сохранение конфигурации в файл"""
        config_data = {
            key: value
            for key, value in {
                "url": self.url,
                "base_url": self.base_url,
                "coerce": self.coerce,
                "timeout": self.timeout,
            }.items()
            if value is not None
        }

        with open(config_path, "w") as f:
            toml.dump(config_data, f)

    def merge_with_args(self, args) -> "OpenApiConfig":
        """Объединение с аргументами командной строки"""
        return OpenApiConfig(
            url=getattr(args, "url", None) or self.url,
            base_url=getattr(args, "base_url", None) or self.base_url,
            coerce=getattr(args, "coerce", None) or self.coerce,
            timeout=getattr(args, "timeout", None) or self.timeout,
        )


def configure_logging(debug: bool = DEBUG) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
