"""商家资料模型。

BusinessProfile 是编译系统指令的唯一输入。资料在编辑时整体替换
（每次修改一个字段都会得到一个新实例），核心层不对字段内容做校验，
空字符串会原样写入系统指令，由模型自行决定如何处理缺失信息。
"""

from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from receptionist_core.domain.exceptions import ValidationError


class BotTone(str, Enum):
    PROFESSIONAL = "Professional"
    FRIENDLY = "Friendly"
    ENTHUSIASTIC = "Enthusiastic"
    EMPATHETIC = "Empathetic"
    WITTY = "Witty"


class BotPlatform(str, Enum):
    WHATSAPP = "WhatsApp"
    MESSENGER = "Messenger"
    INSTAGRAM = "Instagram"

    @property
    def supports_markup(self) -> bool:
        """该平台是否渲染 *星号* 加粗等轻量标记。"""

        return self is BotPlatform.WHATSAPP


@dataclass(frozen=True)
class BusinessProfile:
    """一份完整的商家资料。

    - location: 地址文本，可以包含地图链接。
    - faqs: 自由文本的知识库/FAQ 块，原样写入系统指令。
    - follow_up_goal: 可选的跟进/转化目标指令，为空时不渲染。
    """

    name: str
    industry: str
    description: str
    tone: BotTone
    platform: BotPlatform
    opening_hours: str
    contact_email: str
    phone_number: str
    location: str
    faqs: str
    follow_up_goal: str = ""

    def __post_init__(self) -> None:
        # 允许直接传入下拉框里的显示文本，如 "Friendly"、"WhatsApp"
        object.__setattr__(self, "tone", _coerce(BotTone, self.tone, "tone"))
        object.__setattr__(self, "platform", _coerce(BotPlatform, self.platform, "platform"))

    def with_field(self, name: str, value: Any) -> "BusinessProfile":
        """返回修改了单个字段的新资料。"""

        return self.with_fields(**{name: value})

    def with_fields(self, **changes: Any) -> "BusinessProfile":
        unknown = set(changes) - profile_field_names()
        if unknown:
            raise ValidationError(
                code="UNKNOWN_PROFILE_FIELD",
                message=f"Unknown profile field(s): {', '.join(sorted(unknown))}",
            )
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, str]:
        data: Dict[str, str] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.value if isinstance(value, Enum) else value
        return data


def profile_field_names() -> set:
    return {f.name for f in fields(BusinessProfile)}


def _coerce(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if str(value).lower() in (member.value.lower(), member.name.lower()):
            return member
    raise ValidationError(
        code="INVALID_PROFILE",
        message=f"Invalid {field_name}: {value!r}",
    )


DEFAULT_PROFILE = BusinessProfile(
    name="RED APPLE MOBILE REPAIR",
    industry="Mobile Phone Repair Service",
    description=(
        "Professional mobile repair center in Bangalore specializing in instant screen "
        "replacements, battery issues, and chip-level service for iPhone, OnePlus, "
        "Samsung, and other major brands."
    ),
    tone=BotTone.FRIENDLY,
    platform=BotPlatform.WHATSAPP,
    opening_hours="Mon-Sat: 10:30 AM - 8:30 PM, Sun: 11:00 AM - 5:00 PM",
    contact_email="service@redapplemobile.com",
    phone_number="+91 86606 63776",
    location="Bangalore, Karnataka 560001. Map: https://maps.google.com/?cid=17991440628290210824",
    faqs=(
        "Common Repairs:\n"
        "- iPhone Screen Replacement: Starts from ₹1500 (approx 30 mins)\n"
        "- Android Battery Replacement: Starts from ₹800\n"
        "- Water Damage Service: Inspection charge ₹300 (deducted if repaired)\n"
        "\n"
        "Policies:\n"
        "- Warranty: 90 days on all screen and battery replacements.\n"
        "- Payment: Cash, UPI, and Cards accepted.\n"
        "- Data Privacy: We do not access user data during hardware repairs."
    ),
)


def load_profile(path: Union[str, Path]) -> BusinessProfile:
    """从 YAML 文件加载商家资料，缺失的字段使用 DEFAULT_PROFILE 的值。"""

    p = Path(path).expanduser()
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValidationError(code="INVALID_PROFILE", message=f"Profile file {p} is not a mapping")
    values = {k: ("" if v is None else str(v)) for k, v in data.items()}
    return DEFAULT_PROFILE.with_fields(**values)
