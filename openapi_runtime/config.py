"""
Конфигурация клиента
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Dict, Any, Optional

import toml

DEBUG_ENV = "OPENAPI_RUNTIME_DEBUG"
DEFAULT_USER_AGENT = "openapi-runtime (Python)"
TRANSPORTS = ("httpx", "aiohttp")


@dataclass
class ClientConfig:
    """Настройки клиента: транспорт, таймауты, заголовки"""

    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    transport: str = "httpx"
    headers: Dict[str, str] = field(default_factory=dict)
    base_url: Optional[str] = None
    debug: bool = False

    def __post_init__(self):
        if self.transport not in TRANSPORTS:
            raise ValueError(
                f"Unknown transport '{self.transport}', expected one of {TRANSPORTS}"
            )

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Конфигурация по умолчанию с учетом переменных окружения"""
        return cls(debug=_is_truthy(os.environ.get(DEBUG_ENV)))

    @classmethod
    def from_file(
        cls, config_path: str = "openapi.toml", search_dir: str = None
    ) -> Optional["ClientConfig"]:
        """Загрузка конфигурации из секции [client] toml файла"""
        # Если указана директория для поиска, ищем конфиг там
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, "openapi.toml")
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path).get("client", {})
        except (OSError, toml.TomlDecodeError):
            return None

        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in config_data.items() if k in known}
        values.setdefault("debug", _is_truthy(os.environ.get(DEBUG_ENV)))
        return cls(**values)

    def save_to_file(self, config_path: str = "openapi.toml") -> None:
        """Сохранение конфигурации в файл"""
        config_data = {
            "timeout": self.timeout,
            "user_agent": self.user_agent,
            "transport": self.transport,
            "headers": dict(self.headers),
            "debug": self.debug,
        }
        if self.base_url:
            config_data["base_url"] = self.base_url

        with open(config_path, "w") as f:
            toml.dump({"client": config_data}, f)

    def merge(self, **overrides: Any) -> "ClientConfig":
        """Объединение с явно переданными атрибутами (None игнорируется)"""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown client options: {', '.join(sorted(unknown))}")

        values = {k: v for k, v in overrides.items() if v is not None}
        if "headers" in values:
            values["headers"] = {**self.headers, **values["headers"]}
        return replace(self, **values)


def configure_logging(debug: bool) -> None:
    """Включает отладочный вывод логгера пакета"""
    if not debug:
        return

    logger = logging.getLogger("openapi_runtime")
    logger.setLevel(logging.DEBUG)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logger.addHandler(handler)


def _is_truthy(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() not in ("0", "false", "no", "off")
