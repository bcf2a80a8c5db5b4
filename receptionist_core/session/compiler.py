"""商家资料 -> 系统指令 编译器。

把结构化的 BusinessProfile 渲染为发给 LLM 的系统指令字符串。
所有回答策略（地址、电话、紧急情况、报价话术、格式）都集中写在
指令模板里，业务规则与资料字段一一对应。

除了末尾的 "Current Time" 行以外，同一份资料的渲染结果完全确定。
"""

from datetime import datetime
from typing import Optional

from receptionist_core.domain.profile import BusinessProfile
from receptionist_core.prompts import load_system_prompt


TIMESTAMP_PREFIX = "Current Time: "
MARKUP_HINT = "Use *asterisks* for bolding key details like prices or hours."


def build_system_instruction(
    profile: BusinessProfile,
    now: Optional[datetime] = None,
    include_timestamp: bool = True,
    locale: str = "en",
) -> str:
    """渲染系统指令。

    Args:
        profile: 商家资料，空字段原样写入。
        now: 写入指令的当前时间，默认取本地时间。
        include_timestamp: 为 False 时不追加时间行，结果完全确定。
        locale: 模板语言目录。
    """

    template = load_system_prompt(locale)
    instruction = template.format(
        name=profile.name,
        industry=profile.industry,
        description=profile.description,
        tone=profile.tone.value,
        platform=profile.platform.value,
        location=profile.location,
        phone_number=profile.phone_number,
        contact_email=profile.contact_email,
        opening_hours=profile.opening_hours,
        faqs=profile.faqs,
        formatting_hint=MARKUP_HINT if profile.platform.supports_markup else "",
        follow_up_rule=_follow_up_rule(profile),
    )
    if include_timestamp:
        stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
        instruction = f"{instruction.rstrip()}\n\n{TIMESTAMP_PREFIX}{stamp}\n"
    return instruction


def strip_timestamp(instruction: str) -> str:
    """去掉末尾的时间行，便于比较两次渲染结果。FAQ 等正文中的同名行保持不变。"""

    body = instruction.rstrip()
    head, _, last = body.rpartition("\n")
    if last.startswith(TIMESTAMP_PREFIX):
        body = head
    return body.rstrip()


def _follow_up_rule(profile: BusinessProfile) -> str:
    goal = profile.follow_up_goal.strip()
    if not goal:
        return ""
    return f"7. **Follow-up Goal**: {goal}"
