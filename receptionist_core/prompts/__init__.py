"""系统提示词模板加载工具。

按语言(locale) 从 prompts/<locale> 目录读取接待员系统指令模板，
模板中的 {name}、{phone_number} 等占位符由 compiler 填充。
"""

from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


def load_system_prompt(locale: str = "en") -> str:
    """根据语言加载接待员系统指令模板文本。"""

    fname = PROMPTS_DIR / locale / "receptionist_system.md"
    return fname.read_text(encoding="utf-8")
