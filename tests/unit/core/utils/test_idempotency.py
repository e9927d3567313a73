"""
core/utils/idempotency.py 테스트

operation_id 생성, dedup_key 생성/파싱, 검증 기능 테스트
"""

import pytest

from core.utils.idempotency import (
    LEG_SEPARATOR,
    OPERATION_PREFIX,
    is_operation_id,
    make_entry_dedup_key,
    make_operation_id,
    parse_dedup_key,
    validate_operation_id,
)


class TestOperationPrefix:
    """접두사/구분자 상수 테스트"""

    def test_prefix_value(self) -> None:
        assert OPERATION_PREFIX == "op"

    def test_separator_value(self) -> None:
        assert LEG_SEPARATOR == ":"


class TestMakeOperationId:
    """make_operation_id 함수 테스트"""

    def test_format(self) -> None:
        """op- 접두사 + uuid4"""
        result = make_operation_id()
        assert result.startswith("op-")
        assert len(result) == len("op-") + 36

    def test_unique(self) -> None:
        """매번 다른 ID"""
        assert make_operation_id() != make_operation_id()

    def test_valid(self) -> None:
        assert validate_operation_id(make_operation_id())


class TestMakeEntryDedupKey:
    """make_entry_dedup_key 함수 테스트"""

    def test_basic_generation(self) -> None:
        assert make_entry_dedup_key("op-123", "fee") == "op-123:fee"

    def test_deterministic(self) -> None:
        """동일 입력 → 동일 출력 (재요청 시 같은 키)"""
        assert make_entry_dedup_key("op-1", "cash") == make_entry_dedup_key("op-1", "cash")

    def test_different_legs(self) -> None:
        assert make_entry_dedup_key("op-1", "cash") != make_entry_dedup_key("op-1", "pix")

    def test_empty_operation_id_raises(self) -> None:
        with pytest.raises(ValueError):
            make_entry_dedup_key("", "fee")

    def test_empty_leg_raises(self) -> None:
        with pytest.raises(ValueError):
            make_entry_dedup_key("op-1", "")


class TestParseDedupKey:
    """parse_dedup_key 함수 테스트"""

    def test_parse(self) -> None:
        assert parse_dedup_key("op-123:fee") == ("op-123", "fee")

    def test_parse_batch_leg(self) -> None:
        assert parse_dedup_key("op-abc:line-2") == ("op-abc", "line-2")

    def test_roundtrip_with_generated_id(self) -> None:
        operation_id = make_operation_id()
        key = make_entry_dedup_key(operation_id, "transfer")
        assert parse_dedup_key(key) == (operation_id, "transfer")

    @pytest.mark.parametrize("value", ["", "invalid", ":fee", "op-1:"])
    def test_invalid(self, value: str) -> None:
        assert parse_dedup_key(value) is None


class TestOperationIdValidation:
    """is_operation_id / validate_operation_id 테스트"""

    def test_is_operation_id(self) -> None:
        assert is_operation_id("op-anything")
        assert not is_operation_id("op-")
        assert not is_operation_id("xx-123")
        assert not is_operation_id("")

    def test_separator_not_allowed(self) -> None:
        """구분자가 포함되면 dedup_key 파싱이 깨지므로 거부"""
        assert not validate_operation_id("op-1:2")
