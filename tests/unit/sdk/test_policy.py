"""
策略位向量编码测试
"""

import itertools

import pytest

from event_horizon.domain.enums import Action, TokenType
from event_horizon.domain.policy import (
    ACTION_CODEC,
    TOKEN_TYPE_CODEC,
    WILDCARD,
    BitVectorCodec,
    Policy,
)


class TestBitVectorCodec:
    """位向量编解码测试"""

    def test_empty_set(self):
        """测试空集编码为 0"""
        assert TOKEN_TYPE_CODEC.encode([]) == 0
        assert TOKEN_TYPE_CODEC.decode(0) == []

    def test_bit_positions(self):
        """测试第 i 个取值对应 1 << i"""
        for i, value in enumerate(TokenType):
            assert TOKEN_TYPE_CODEC.encode([value]) == 1 << i

    @pytest.mark.parametrize("size", range(len(TokenType) + 1))
    def test_token_type_round_trip(self, size):
        """测试令牌类型任意子集往返一致"""
        for subset in itertools.combinations(list(TokenType), size):
            assert TOKEN_TYPE_CODEC.decode(TOKEN_TYPE_CODEC.encode(subset)) == list(subset)

    def test_action_round_trip(self):
        """测试动作集合往返一致（含超过 63 位的部分）"""
        actions = list(Action)
        subsets = [actions[:1], actions[::3], actions[-5:], actions]
        for subset in subsets:
            assert ACTION_CODEC.decode(ACTION_CODEC.encode(subset)) == subset

    def test_wildcard(self):
        """测试通配符编码为 -1 且不与其他位组合"""
        assert TOKEN_TYPE_CODEC.encode([WILDCARD]) == -1
        assert TOKEN_TYPE_CODEC.encode([TokenType.AGENT, WILDCARD]) == -1
        assert TOKEN_TYPE_CODEC.decode(-1) == [WILDCARD]
        assert ACTION_CODEC.decode(-1) == [WILDCARD]

    def test_unknown_values_ignored(self):
        """测试未知取值与未定义的位被忽略"""
        assert TOKEN_TYPE_CODEC.encode(["NewTokenType"]) == 0
        top = 1 << (len(TokenType) + 5)
        assert TOKEN_TYPE_CODEC.decode(top | 1) == [list(TokenType)[0]]

    def test_split_join(self):
        """测试 128 位值拆分为有符号 int64 对"""
        bits = ACTION_CODEC.encode(list(Action))
        high, low = ACTION_CODEC.split(bits)
        assert -(1 << 63) <= high < (1 << 63)
        assert -(1 << 63) <= low < (1 << 63)
        assert BitVectorCodec.join(high, low) == bits

        assert ACTION_CODEC.split(-1) == (-1, -1)
        assert BitVectorCodec.join(-1, -1) == -1

    def test_split_sign(self):
        """测试第 63 位置位时低位为负数"""
        high, low = ACTION_CODEC.split(1 << 63)
        assert high == 0
        assert low == -(1 << 63)

    def test_too_many_values(self):
        """测试取值超过位宽"""
        with pytest.raises(ValueError):
            BitVectorCodec(list(Action), width=64)


class TestPolicy:
    """策略模型测试"""

    def test_policy_bits(self):
        """测试策略的动作与令牌类型位向量"""
        policy = Policy.model_validate({
            "PolicyID": "p1",
            "Effect": "Allow",
            "Actions": ["GetTenant", "FutureAction"],
            "DelegatedActions": ["*"],
            "Principal": {"Type": "User", "TokenTypes": ["AgentToken"]},
        })
        assert policy.actions_bits == ACTION_CODEC.bit(Action.GET_TENANT)
        assert policy.delegated_actions_bits == -1
        assert policy.principal.token_types_bits == TOKEN_TYPE_CODEC.bit(TokenType.AGENT)
        assert "FutureAction" in policy.actions
