"""wirediag 命令行入口

使用方式：
    python -m wirediag cli            # 启动交互式排障
    python -m wirediag api            # 启动 FastAPI 服务
    python -m wirediag init           # 初始化数据库
    python -m wirediag import         # 导入接线图识别结果
    python -m wirediag trace          # 追踪两个元件之间的导线
"""
import sys

import click


@click.group()
def main():
    """接线图排障助手"""
    pass


@main.command("cli")
@click.option("--diagram", "diagram_id", default=None, help="绑定的接线图 ID")
@click.option("--make", default="Unknown", help="载具厂商")
@click.option("--model", default="Unknown", help="载具型号")
@click.option("--year", default=None, type=int, help="年份")
@click.option(
    "--type",
    "vehicle_type",
    type=click.Choice(["aircraft", "automotive", "marine"]),
    default="aircraft",
    help="载具类型",
)
def interactive_cli(diagram_id: str, make: str, model: str, year: int, vehicle_type: str):
    """启动交互式命令行排障"""
    from wirediag.cli.main import main as cli_main
    from wirediag.models.session import VehicleInfo

    vehicle = VehicleInfo(make=make, model=model, year=year, type=vehicle_type)
    cli_main(diagram_id=diagram_id, vehicle=vehicle)


@main.command("api")
@click.option(
    "--host",
    default="127.0.0.1",
    help="服务监听地址",
)
@click.option(
    "--port",
    default=8000,
    type=int,
    help="服务监听端口",
)
def serve(host: str, port: int):
    """启动 FastAPI 服务"""
    import uvicorn
    from wirediag.api.main import app

    click.echo(f"正在启动服务: http://{host}:{port}")
    click.echo(f"API 文档: http://{host}:{port}/docs")
    uvicorn.run(app, host=host, port=port)


@main.command()
@click.option(
    "--db",
    default=None,
    help="数据库文件路径（默认: data/diagrams.db）",
)
def init(db: str):
    """初始化数据库（仅创建表结构，不导入数据）"""
    from wirediag.scripts.init_db import init_database

    try:
        init_database(db)
        click.echo("\n[OK] 数据库初始化成功")
    except Exception as e:
        click.echo(f"\n[ERROR] 初始化失败: {e}", err=True)
        sys.exit(1)


@main.command("import")
@click.option(
    "--data",
    required=True,
    type=click.Path(exists=True),
    help="接线图识别结果文件路径（JSON 格式）",
)
@click.option(
    "--db",
    default=None,
    help="数据库文件路径（默认: data/diagrams.db）",
)
def import_data(data: str, db: str):
    """导入接线图识别结果到数据库"""
    from wirediag.scripts.import_diagram import import_diagram

    try:
        import_diagram(data, db)
        click.echo("\n[OK] 数据导入成功")
    except Exception as e:
        click.echo(f"\n[ERROR] 导入失败: {e}", err=True)
        sys.exit(1)


@main.command("trace")
@click.argument("diagram_id")
@click.argument("start_id")
@click.argument("end_id")
@click.option(
    "--db",
    default=None,
    help="数据库文件路径（默认: data/diagrams.db）",
)
def trace(diagram_id: str, start_id: str, end_id: str, db: str):
    """追踪两个元件之间的导线路径"""
    from rich.console import Console

    from wirediag.cli.rendering import TeammateRenderer
    from wirediag.core.graph.errors import GraphIntegrityError
    from wirediag.core.graph.tracing import trace_path
    from wirediag.dao.diagram_dao import DiagramDAO

    console = Console()
    dao = DiagramDAO(db)

    if not dao.exists(diagram_id):
        click.echo(f"[ERROR] 接线图不存在: {diagram_id}", err=True)
        sys.exit(1)

    try:
        result = trace_path(
            dao.get_components(diagram_id),
            dao.get_connections(diagram_id),
            start_id,
            end_id,
        )
    except GraphIntegrityError as e:
        click.echo(f"[ERROR] 接线图数据异常: {e}", err=True)
        sys.exit(2)
    except ValueError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    console.print(TeammateRenderer(console).render_trace(result))
    if not result["success"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
