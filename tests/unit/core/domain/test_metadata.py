"""
core/domain/metadata.py 테스트

module별 변형 선택, 별칭 처리, 직렬화
"""

from core.domain.metadata import (
    AdjustmentMetadata,
    FeeMetadata,
    IncomeMetadata,
    MerchantMetadata,
    MonthlyFeeMetadata,
    ResourceMetadata,
    TransferMetadata,
    UnknownMetadata,
    parse_metadata,
    resolve_module,
)


class TestResolveModule:
    """module 키 별칭 우선순위"""

    def test_module_first(self) -> None:
        data = {"module": "mensalidade", "modulo": "gasto_associacao"}
        assert resolve_module(data) == "mensalidade"

    def test_modulo_alias(self) -> None:
        assert resolve_module({"modulo": "taxa_pix_bb"}) == "taxa_pix_bb"

    def test_original_module_alias(self) -> None:
        assert resolve_module({"original_module": "consumo_saldo"}) == "consumo_saldo"

    def test_missing(self) -> None:
        assert resolve_module({}) is None
        assert resolve_module(None) is None


class TestParseMetadata:
    """JSON dict → 변형"""

    def test_monthly_fee_with_turno_alias(self) -> None:
        meta = parse_metadata({"modulo": "mensalidade", "turno": "matutino"})
        assert isinstance(meta, MonthlyFeeMetadata)
        assert meta.module == "mensalidade"
        assert meta.shift == "matutino"

    def test_variants(self) -> None:
        assert isinstance(parse_metadata({"module": "especie_transfer"}), TransferMetadata)
        assert isinstance(parse_metadata({"module": "conta_digital_taxa"}), FeeMetadata)
        assert isinstance(parse_metadata({"module": "cofre_ajuste"}), AdjustmentMetadata)
        assert isinstance(parse_metadata({"module": "aporte_saldo"}), MerchantMetadata)
        assert isinstance(parse_metadata({"module": "pix_direto_uecx"}), ResourceMetadata)
        assert isinstance(parse_metadata({"module": "pix_nao_identificado"}), IncomeMetadata)

    def test_unknown_module_keeps_raw(self) -> None:
        data = {"module": "rifa_junina", "observation": "nota antiga", "legacy_id": "42"}
        meta = parse_metadata(data)

        assert isinstance(meta, UnknownMetadata)
        assert meta.module == "rifa_junina"
        assert meta.notes == "nota antiga"
        assert meta.legacy_id == "42"
        assert meta.to_dict() == data

    def test_no_module_is_outros(self) -> None:
        meta = parse_metadata(None)
        assert isinstance(meta, UnknownMetadata)
        assert meta.module == "outros"

    def test_unknown_keys_go_to_extra(self) -> None:
        meta = parse_metadata({"module": "gasto_associacao", "receipt_no": "A-1"})
        assert meta.extra == {"receipt_no": "A-1"}
        assert meta.to_dict()["receipt_no"] == "A-1"


class TestToDict:
    """직렬화"""

    def test_none_values_omitted(self) -> None:
        meta = TransferMetadata(module="especie_transfer", entity_id="associacao")
        assert meta.to_dict() == {"module": "especie_transfer", "entity_id": "associacao"}

    def test_roundtrip_resource(self) -> None:
        meta = ResourceMetadata(
            module="pix_direto_uecx",
            entity_id="ue",
            account_id="resource_ue",
            merchant_id="avulso",
            is_avulso=True,
            origin_fund="UE",
        )
        assert parse_metadata(meta.to_dict()) == meta
