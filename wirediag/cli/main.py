"""CLI 主程序

使用 Rich 库美化 CLI 输出。

运行方式：
    python -m wirediag cli                    # 交互式排障
    python -m wirediag cli --diagram DIAG-01  # 绑定接线图（高亮元件映射）
"""
import asyncio
from typing import Optional

from rich.console import Console
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from wirediag.cli.rendering import TeammateRenderer
from wirediag.core.gateway.llm_gateway import LLMReasoningGateway
from wirediag.core.session.controller import SessionController
from wirediag.core.session.errors import SessionError
from wirediag.dao.diagram_dao import DiagramDAO
from wirediag.models.session import VehicleInfo
from wirediag.services.llm_service import LLMService
from wirediag.utils.config import load_config


class TeammateCLI:
    """交互式排障 CLI"""

    COMMANDS = "/help /status /why /photo /reassess /resolve /reset /exit"

    def __init__(self, diagram_id: Optional[str] = None, vehicle: Optional[VehicleInfo] = None):
        """初始化

        Args:
            diagram_id: 绑定的接线图 ID
            vehicle: 载具信息
        """
        self.console = Console()
        self.config = load_config()
        self.renderer = TeammateRenderer(self.console)
        self.diagram_id = diagram_id
        self.vehicle = vehicle

        self.llm_service = LLMService(self.config, progress_callback=self._print_progress)
        self.gateway = LLMReasoningGateway(self.llm_service)
        self._loop = asyncio.new_event_loop()

        self.controller: SessionController = self._create_controller()
        self.round_count = 0

    def _create_controller(self) -> SessionController:
        controller = SessionController(
            self.gateway,
            vehicle_info=self.vehicle,
            config=self.config.session,
            progress_callback=self._print_progress,
        )
        if self.diagram_id:
            dao = DiagramDAO()
            controller.bind_diagram(self.diagram_id, dao.get_components(self.diagram_id))
        return controller

    def _print_progress(self, message: str) -> None:
        self.console.print(Text(f"  {message}", style="dim"))

    def _print_indented(self, content, num_spaces: int = 2) -> None:
        """打印带缩进的 Rich 对象"""
        self.console.print(Padding(content, (0, 0, 0, num_spaces)))

    def run(self):
        """运行 CLI 主循环"""
        self.console.print()
        self.console.print(Text(self.renderer.get_logo(), style="bold cyan"))
        self.console.print(Text(f"可用命令: {self.COMMANDS}", style="dim"))
        self.console.print()
        self.console.print(Text("Describe the symptom to start troubleshooting.", style="bold yellow"))
        self.console.print()

        try:
            while True:
                try:
                    user_input = self.console.input("[bold blue]tech>[/bold blue] ").strip()
                except EOFError:
                    break

                if not user_input:
                    continue

                if user_input.startswith("/"):
                    if self._handle_command(user_input):
                        break
                    continue

                self._run_turn(self.controller.handle_message(user_input))

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print(Text("\n再见！\n", style="blue"))
            self._loop.close()

    def _run_turn(self, coro) -> None:
        """执行一轮并输出回复"""
        try:
            reply = self._loop.run_until_complete(coro)
        except SessionError as e:
            self.console.print(Text(str(e), style="red"))
            return

        self.round_count += 1
        self.console.print()
        self._print_indented(self.renderer.render_reply(reply))
        self.console.print()

    def _handle_command(self, command: str) -> bool:
        """处理命令，返回 True 表示退出"""
        name, _, arg = command.partition(" ")
        name = name.lower()
        arg = arg.strip()

        if name == "/help":
            self._show_help()
        elif name == "/status":
            self._show_status()
        elif name == "/why":
            self._run_turn(self.controller.explain(arg or "the current theory"))
        elif name == "/photo":
            url, _, comment = arg.partition(" ")
            if not url:
                self.console.print(Text("用法: /photo <url> [说明]", style="red"))
            else:
                self._run_turn(self.controller.analyze_photo(url, comment.strip() or None))
        elif name == "/reassess":
            self._run_turn(self.controller.reassess())
        elif name == "/resolve":
            self._run_turn(self.controller.resolve(arg or None))
        elif name == "/reset":
            self.controller = self._create_controller()
            self.round_count = 0
            self.console.print(Text("已重置会话，请重新描述问题", style="green"))
        elif name == "/exit":
            return True
        else:
            text = Text()
            text.append(f"未知命令: {name}", style="red")
            text.append("，输入 /help 查看可用命令")
            self.console.print(text)
        return False

    def _show_help(self) -> None:
        help_text = Text()
        help_text.append("/status", style="bold")
        help_text.append("           当前假设与证据\n")
        help_text.append("/why <问题>", style="bold")
        help_text.append("       解释原因\n")
        help_text.append("/photo <url>", style="bold")
        help_text.append("      分析照片或接线图\n")
        help_text.append("/reassess", style="bold")
        help_text.append("         结果不符合预期，重新评估\n")
        help_text.append("/resolve [结论]", style="bold")
        help_text.append("   结束会话\n")
        help_text.append("/reset", style="bold")
        help_text.append("            重新开始\n")
        help_text.append("/exit", style="bold")
        help_text.append("             退出")
        self.console.print(Panel(help_text, title="帮助", title_align="left"))

    def _show_status(self) -> None:
        self._print_indented(
            self.renderer.render_status_bar(
                self.round_count,
                self.controller.phase.value,
                self.controller.state,
            )
        )


def main(diagram_id: Optional[str] = None, vehicle: Optional[VehicleInfo] = None):
    """CLI 入口"""
    TeammateCLI(diagram_id=diagram_id, vehicle=vehicle).run()
