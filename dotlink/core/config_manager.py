"""配置管理器

提供 .dotlink.yaml 配置文件的加载、验证和合并，并结合环境变量
解析出运行时使用的 LinkSettings。
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from dotlink.core.data_structures import LinkSettings
from dotlink.core.exceptions import ConfigIOError, ConfigParseError, ConfigValidationError
from dotlink.core.logger import get_logger

logger = get_logger("dotlink.config_manager")

CONFIG_HOME_ENV = "XDG_CONFIG_HOME"
DATA_HOME_ENV = "XDG_DATA_HOME"
DEFAULT_CONFIG_HOME = Path(".config")
DEFAULT_DATA_HOME = Path(".local") / "share"


class ConfigManager:
    """配置管理器

    负责加载、验证和合并仓库根目录下的 .dotlink.yaml。
    """

    DEFAULT_CONFIG = {
        "files": {
            "links": "links",
            "exec_marker": "exec",
            "exec_script": "setup",
        },
        "paths": {
            "home": None,
        },
        "display": {
            "colors": True,
        },
        "logging": {
            "level": "WARNING",
            "log_dir": None,
            "json": False,
        },
    }

    CONFIG_FILENAME = ".dotlink.yaml"
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

    def __init__(self, repo_root: Optional[Path] = None):
        """初始化配置管理器

        Args:
            repo_root: 仓库根目录，默认为当前目录
        """
        self.repo_root = Path(repo_root) if repo_root else Path.cwd()
        self._config: Optional[Dict[str, Any]] = None
        logger.debug("ConfigManager initialized", repo_root=str(self.repo_root))

    @property
    def config_path(self) -> Path:
        """获取配置文件路径"""
        return self.repo_root / self.CONFIG_FILENAME

    def get_default_config(self) -> Dict[str, Any]:
        """获取默认配置的深拷贝"""
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def load_config(self, config_path: Optional[Path] = None) -> Dict[str, Any]:
        """加载配置文件

        文件不存在或为空时使用默认配置，否则与默认配置深度合并后验证。

        Args:
            config_path: 配置文件路径，如果为 None 则使用默认路径

        Returns:
            配置字典

        Raises:
            ConfigIOError: 文件读取失败时抛出
            ConfigParseError: YAML 解析失败时抛出
            ConfigValidationError: 配置无效时抛出
        """
        path = config_path or self.config_path

        logger.info("Loading configuration", path=str(path))

        if not path.exists():
            logger.info("Configuration file not found, using defaults", path=str(path))
            self._config = self.get_default_config()
            return self._config

        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error("Failed to parse YAML configuration", path=str(path), error=str(e))
            raise ConfigParseError(f"Failed to parse YAML configuration: {e}", details=str(e))
        except OSError as e:
            logger.error("Failed to read configuration file", path=str(path), error=str(e))
            raise ConfigIOError(f"Failed to read configuration file: {e}", details=str(e))

        if config_data is None:
            config_data = self.get_default_config()
        elif not isinstance(config_data, dict):
            raise ConfigValidationError(
                "Configuration validation failed: top level must be a mapping",
                details={"path": str(path)},
            )
        else:
            config_data = self.merge_configs(self.get_default_config(), config_data)

        self.validate_config(config_data)
        self._config = config_data
        logger.info("Configuration loaded successfully", path=str(path))
        return self._config

    def validate_config(self, config: Optional[Dict[str, Any]] = None) -> bool:
        """验证配置结构和值

        Raises:
            ConfigValidationError: 配置验证失败时抛出
        """
        cfg = config if config is not None else self._config

        if cfg is None:
            raise ConfigValidationError("No configuration loaded or provided")

        errors: List[str] = []

        for section in ["files", "paths", "display", "logging"]:
            if not isinstance(cfg.get(section), dict):
                errors.append(f"{section} must be a dictionary")

        files = cfg.get("files")
        if isinstance(files, dict):
            for key in ["links", "exec_marker", "exec_script"]:
                value = files.get(key)
                if not isinstance(value, str) or not value:
                    errors.append(f"files.{key} must be a non-empty string")
                elif "/" in value or value in (".", ".."):
                    errors.append(f"files.{key} must be a plain file name")

        paths = cfg.get("paths")
        if isinstance(paths, dict):
            home = paths.get("home")
            if home is not None and not isinstance(home, str):
                errors.append("paths.home must be a string or null")

        display = cfg.get("display")
        if isinstance(display, dict) and not isinstance(display.get("colors", True), bool):
            errors.append("display.colors must be a boolean")

        logging_cfg = cfg.get("logging")
        if isinstance(logging_cfg, dict):
            level = logging_cfg.get("level")
            if not isinstance(level, str) or level.upper() not in self.LOG_LEVELS:
                errors.append(f"logging.level must be one of {self.LOG_LEVELS}")
            log_dir = logging_cfg.get("log_dir")
            if log_dir is not None and not isinstance(log_dir, str):
                errors.append("logging.log_dir must be a string or null")
            if not isinstance(logging_cfg.get("json", False), bool):
                errors.append("logging.json must be a boolean")

        if errors:
            logger.error("Configuration validation failed", errors=errors)
            raise ConfigValidationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                details=errors,
            )

        return True

    def merge_configs(
        self,
        base: Dict[str, Any],
        override: Dict[str, Any],
    ) -> Dict[str, Any]:
        """深度合并配置，override 中的值优先

        Args:
            base: 基础配置
            override: 覆盖配置

        Returns:
            合并后的配置
        """
        result = copy.deepcopy(base)

        for key, value in override.items():
            base_value = result.get(key)
            # 两边都是字典时递归合并，否则覆盖
            if isinstance(base_value, dict) and isinstance(value, dict):
                result[key] = self.merge_configs(base_value, value)
            else:
                result[key] = copy.deepcopy(value)

        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """获取配置值，支持点号分隔的路径

        例如: get("files.links") 返回 "links"
        """
        if self._config is None:
            self.load_config()

        value: Any = self._config
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def build_settings(
        self,
        home: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> LinkSettings:
        """结合配置与环境变量生成运行时设置

        Args:
            home: 命令行指定的 home 目录，优先于配置文件
            env: 环境变量，默认为 os.environ

        Returns:
            LinkSettings 实例
        """
        env = os.environ if env is None else env

        if home is None:
            configured_home = self.get("paths.home")
            home = Path(configured_home).expanduser() if configured_home else Path.home()
        home = Path(home).expanduser().resolve()

        settings = LinkSettings(
            repo_root=self.repo_root.resolve(),
            home=home,
            config_home=resolve_base_dir(env, CONFIG_HOME_ENV, home / DEFAULT_CONFIG_HOME),
            data_home=resolve_base_dir(env, DATA_HOME_ENV, home / DEFAULT_DATA_HOME),
            links_filename=self.get("files.links"),
            exec_marker=self.get("files.exec_marker"),
            exec_script=self.get("files.exec_script"),
        )
        logger.debug(
            "Settings resolved",
            repo_root=str(settings.repo_root),
            home=str(settings.home),
            config_home=str(settings.config_home),
            data_home=str(settings.data_home),
        )
        return settings


def resolve_base_dir(env: Mapping[str, str], name: str, fallback: Path) -> Path:
    """读取 XDG 基础目录环境变量

    未设置、为空或不是绝对路径时使用 fallback。
    """
    value = env.get(name, "")
    if value and os.path.isabs(value):
        return Path(value)
    return fallback
