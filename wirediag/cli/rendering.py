"""渲染逻辑

CLI 使用的 Rich 渲染。所有方法返回 Rich 可渲染对象，由调用方决定如何输出。
"""
from typing import Any, Dict, List, Optional

from rich.box import SIMPLE
from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from wirediag.core.session.diagnostic_state import DiagnosticState
from wirediag.models.oracle import Tone, TurnReply


TONE_STYLES = {
    Tone.ENCOURAGING: "green",
    Tone.EXCITED: "bold green",
    Tone.CONCERNED: "yellow",
    Tone.RECONSIDERING: "magenta",
    Tone.EDUCATIONAL: "cyan",
    Tone.OBSERVANT: "cyan",
    Tone.APOLOGETIC: "yellow",
}


class TeammateRenderer:
    """诊断对话渲染器"""

    LOGO = """
██╗    ██╗██╗██████╗ ███████╗██████╗ ██╗ █████╗  ██████╗
██║    ██║██║██╔══██╗██╔════╝██╔══██╗██║██╔══██╗██╔════╝
██║ █╗ ██║██║██████╔╝█████╗  ██║  ██║██║███████║██║  ███╗
██║███╗██║██║██╔══██╗██╔══╝  ██║  ██║██║██╔══██║██║   ██║
╚███╔███╔╝██║██║  ██║███████╗██████╔╝██║██║  ██║╚██████╔╝
 ╚══╝╚══╝ ╚═╝╚═╝  ╚═╝╚══════╝╚═════╝ ╚═╝╚═╝  ╚═╝ ╚═════╝
"""

    def __init__(self, console: Console = None):
        """初始化渲染器

        Args:
            console: Rich Console 实例
        """
        self.console = console or Console()

    def get_logo(self) -> str:
        return self.LOGO.strip()

    def _render_confidence_bar(self, confidence: int, width: int = 20) -> Text:
        """渲染置信度进度条"""
        filled = int(round(confidence / 100 * width))
        if confidence >= 70:
            style = "green"
        elif confidence >= 40:
            style = "yellow"
        else:
            style = "red"
        bar = Text()
        bar.append("█" * filled, style=style)
        bar.append("░" * (width - filled), style="dim")
        bar.append(f" {confidence}%", style="bold")
        return bar

    def render_status_bar(self, round_count: int, phase: str, state: DiagnosticState) -> Group:
        """渲染状态栏

        Args:
            round_count: 轮次
            phase: 会话阶段
            state: 诊断状态

        Returns:
            Rich Group 对象
        """
        stats_text = Text()
        stats_text.append("轮次 ", style="dim")
        stats_text.append(str(round_count), style="bold")
        stats_text.append("  │  ", style="dim")
        stats_text.append("阶段 ", style="dim")
        stats_text.append(phase, style="bold")
        stats_text.append("  │  ", style="dim")
        stats_text.append("测量 ", style="dim")
        stats_text.append(str(len(state.measurements)), style="bold")
        stats_text.append("  │  ", style="dim")
        stats_text.append("已测元件 ", style="dim")
        stats_text.append(str(len(state.tested_components)), style="bold")

        parts = [stats_text, Text("")]
        current = state.current_hypothesis
        if current:
            line = Text()
            line.append("当前假设: ", style="dim")
            line.append(current.statement)
            parts.append(line)
            parts.append(self._render_confidence_bar(state.confidence))
        else:
            parts.append(Text("暂无假设", style="dim"))

        return Group(*parts)

    def render_reply(self, reply: TurnReply) -> Group:
        """渲染一轮回复

        Args:
            reply: 本轮回复

        Returns:
            Rich Group 对象
        """
        style = TONE_STYLES.get(reply.tone, "none")
        parts = [Markdown(reply.message, justify="left", style=style)]

        if reply.degraded:
            parts.append(Text("(推理服务暂时不可用，已使用模板回复)", style="dim italic"))

        if reply.test_procedure:
            parts.append(Text(""))
            parts.append(self.render_test_procedure(reply.test_procedure.to_payload()))

        if reply.highlight_components:
            highlight = Text()
            highlight.append("相关元件: ", style="dim")
            highlight.append(", ".join(reply.highlight_components), style="cyan")
            parts.append(highlight)

        if reply.quick_suggestions:
            parts.append(Text(""))
            for i, suggestion in enumerate(reply.quick_suggestions, 1):
                parts.append(Text(f"  [{i}] {suggestion}", style="dim"))

        return Group(*parts)

    def render_test_procedure(self, procedure: Dict[str, Any]) -> Panel:
        """渲染测试步骤"""
        labels = [
            ("action", "操作"),
            ("tool", "工具"),
            ("location", "位置"),
            ("expectedResult", "预期"),
            ("safety", "安全"),
        ]
        content = Text()
        for key, label in labels:
            value = procedure.get(key)
            if value:
                content.append(f"{label}: ", style="bold")
                content.append(f"{value}\n", style="red" if key == "safety" else "")
        return Panel(content, title="建议测试", title_align="left", border_style="yellow")

    def render_trace(self, result: Dict[str, Any]) -> Group:
        """渲染导线追踪结果

        Args:
            result: trace_path 返回的字典

        Returns:
            Rich Group 对象
        """
        if not result.get("success"):
            return Group(Text(result.get("error", "no path"), style="red"))

        path = result["path"]
        route = Text()
        route.append(" → ".join(path["path"]), style="bold green")

        table = Table(box=SIMPLE, show_header=True, header_style="bold")
        table.add_column("导线")
        table.add_column("从")
        table.add_column("到")
        table.add_column("颜色")
        table.add_column("线规")
        table.add_column("信号")
        for connection in path["connections"]:
            table.add_row(
                connection["id"],
                connection["fromComponentId"],
                connection["toComponentId"],
                connection.get("wireColor") or "-",
                connection.get("wireGauge") or "-",
                connection.get("signalType") or "-",
            )

        summary = Text()
        summary.append(f"跳数: {path['length']}", style="dim")
        if path.get("wireColor"):
            summary.append(f"  颜色: {path['wireColor']}", style="dim")
        if path.get("wireGauge"):
            summary.append(f"  线规: {path['wireGauge']}", style="dim")

        return Group(route, table, summary)

    def render_components(self, components: List[Dict[str, Any]], title: Optional[str] = None) -> Table:
        """渲染元件列表"""
        table = Table(title=title, box=SIMPLE, header_style="bold")
        table.add_column("ID")
        table.add_column("名称")
        table.add_column("类型")
        table.add_column("位置")
        for c in components:
            table.add_row(c["id"], c["name"], c["type"], c.get("location") or "-")
        return table
