"""
命令行入口

提供 CLI 参数解析
"""

import argparse
import os

from iris.core.config import settings as default_settings


def build_parser() -> argparse.ArgumentParser:
    """构建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog="iris",
        description="Iris - 服务端内部转发网关",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  iris                                  使用默认配置启动
  iris -p 8080                          使用 8080 端口启动
  iris --forwards-file conf/fw.yaml     指定转发规则文件
  iris --target-app myapp.main:app      转发到指定的 ASGI 应用
  iris --debug --reload                 开发模式
        """,
    )

    parser.add_argument(
        "-H",
        "--host",
        type=str,
        default=None,
        help="监听地址 (默认: 127.0.0.1，仅本地访问)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="监听端口 (默认: 8890)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="启用调试模式",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="启用热重载（开发模式）",
    )
    parser.add_argument(
        "--forwards-file",
        type=str,
        default=None,
        help="转发规则文件 (默认: forwards.yaml)",
    )
    parser.add_argument(
        "--target-app",
        type=str,
        default=None,
        help="转发目标 ASGI 应用，形如 module:attr (默认: 网关自身)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别 (默认: INFO)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Iris v{default_settings.app_version}",
    )

    return parser


def apply_args(args: argparse.Namespace) -> None:
    """将命令行参数写入环境变量（覆盖配置）"""
    if args.host is not None:
        os.environ["IRIS_HOST"] = args.host
    if args.port is not None:
        os.environ["IRIS_PORT"] = str(args.port)
    if args.debug:
        os.environ["IRIS_DEBUG"] = "true"
    if args.forwards_file is not None:
        os.environ["IRIS_FORWARDS_FILE"] = args.forwards_file
    if args.target_app is not None:
        os.environ["IRIS_FORWARD_TARGET_APP"] = args.target_app
    if args.log_level is not None:
        os.environ["IRIS_LOG_LEVEL"] = args.log_level


def main(argv=None):
    """CLI 主入口"""
    args = build_parser().parse_args(argv)
    apply_args(args)

    # 重新加载配置
    from iris.core.config import Settings

    settings = Settings()

    import uvicorn

    uvicorn.run(
        "iris.main:app",
        host=settings.host,
        port=settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
