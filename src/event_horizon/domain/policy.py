"""
策略模型与枚举集合位向量编码

第 i 个枚举值对应位 1 << i，通配符 "*" 固定编码为 -1 且不与其他位组合。
动作枚举超过 63 个，使用 128 位编码，按 (high, low) 两个有符号 int64 传输。
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import Field

from event_horizon.domain.enums import Action, EffectType, MemberRole, PrincipalType, TokenType
from event_horizon.domain.models import ApiModel

E = TypeVar("E", bound=Enum)

WILDCARD = "*"
ALL_ONES = -1

_MASK64 = (1 << 64) - 1


def _to_signed64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value >> 63 else value


class BitVectorCodec(Generic[E]):
    """枚举集合 <-> 整数位向量"""

    def __init__(self, values: Sequence[E], width: int = 64):
        # 最高位保留，避免与 -1 通配符冲突
        if len(values) > width - 1:
            raise ValueError(f"{len(values)} values do not fit in a {width}-bit vector")
        self._width = width
        self._values = list(values)
        self._bits = {value.value: 1 << i for i, value in enumerate(self._values)}

    @property
    def width(self) -> int:
        return self._width

    def bit(self, value: E | str) -> int:
        key = value.value if isinstance(value, Enum) else value
        if key == WILDCARD:
            return ALL_ONES
        return self._bits[key]

    def encode(self, values: Iterable[E | str]) -> int:
        result = 0
        for value in values:
            key = value.value if isinstance(value, Enum) else value
            if key == WILDCARD:
                return ALL_ONES
            # 未知取值不占位
            result |= self._bits.get(key, 0)
        return result

    def decode(self, bits: int) -> list[E | str]:
        if bits == ALL_ONES:
            return [WILDCARD]
        bits &= (1 << self._width) - 1
        return [value for i, value in enumerate(self._values) if bits >> i & 1]

    def split(self, bits: int) -> tuple[int, int]:
        """拆分为有符号 (high, low) int64 对"""
        if bits == ALL_ONES:
            return ALL_ONES, ALL_ONES
        return _to_signed64(bits >> 64), _to_signed64(bits)

    @staticmethod
    def join(high: int, low: int) -> int:
        if high == ALL_ONES and low == ALL_ONES:
            return ALL_ONES
        return ((high & _MASK64) << 64) | (low & _MASK64)


ACTION_CODEC: BitVectorCodec[Action] = BitVectorCodec(list(Action), width=128)
TOKEN_TYPE_CODEC: BitVectorCodec[TokenType] = BitVectorCodec(list(TokenType), width=64)


class PolicyPrincipal(ApiModel):
    type: PrincipalType | str = Field(alias="Type")
    name: str | None = Field(default=None, alias="Name")
    role_arn: str | None = Field(default=None, alias="RoleArn")
    tenant: str | None = Field(default=None, alias="Tenant")
    token_types: list[TokenType | str] | None = Field(default=None, alias="TokenTypes")
    provider: str | None = Field(default=None, alias="Provider")
    organization: str | None = Field(default=None, alias="Organization")
    organization_role: MemberRole | str | None = Field(default=None, alias="OrganizationRole")
    enterprise: str | None = Field(default=None, alias="Enterprise")
    enterprise_role: MemberRole | str | None = Field(default=None, alias="EnterpriseRole")

    @property
    def token_types_bits(self) -> int:
        return TOKEN_TYPE_CODEC.encode(self.token_types or [])


class Policy(ApiModel):
    policy_id: str = Field(alias="PolicyID")
    name: str = Field(default="", alias="Name")
    effect: EffectType | str = Field(default=EffectType.ALLOW, alias="Effect")
    tenant: str | None = Field(default=None, alias="Tenant")
    principal: PolicyPrincipal | None = Field(default=None, alias="Principal")
    actions: list[Action | str] | None = Field(default=None, alias="Actions")
    delegated_actions: list[Action | str] | None = Field(default=None, alias="DelegatedActions")
    delegated_principal: PolicyPrincipal | None = Field(default=None, alias="DelegatedPrincipal")
    constraints: list[str] | None = Field(default=None, alias="Constraints")
    created_at: datetime | None = Field(default=None, alias="CreatedAt")
    updated_at: datetime | None = Field(default=None, alias="UpdatedAt")

    @property
    def actions_bits(self) -> int:
        return ACTION_CODEC.encode(self.actions or [])

    @property
    def delegated_actions_bits(self) -> int:
        return ACTION_CODEC.encode(self.delegated_actions or [])
