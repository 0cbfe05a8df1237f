"""
应用配置模块

使用 pydantic-settings 管理配置，支持环境变量和 .env 文件
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Iris 配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="IRIS_",
    )

    # ========== 应用基础配置 ==========
    app_name: str = "Iris"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8890

    # ========== 内部转发配置 ==========
    # 转发调用超时时间（秒）
    forward_timeout: float = 30.0
    # 最大转发深度（超过视为转发循环）
    forward_max_depth: int = 5
    # 转发目标应用（"module:attr" 形式），为空时转发到网关自身
    forward_target_app: str = ""

    # ========== 转发规则配置 ==========
    # 转发规则文件路径
    forwards_file: str = "forwards.yaml"
    # 是否加载转发规则文件
    forwards_enabled: bool = True

    # ========== 日志配置 ==========
    # 日志级别
    log_level: str = "INFO"
    # 是否使用 JSON 格式日志
    log_json_format: bool = True


@lru_cache
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()


# 全局配置实例
settings = get_settings()
