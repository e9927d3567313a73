"""
Ledger 타입 정의

거래 유형, 상태, 계정 키, 업무 모듈 등 Ledger 시스템에서 사용하는 Enum과 상수
"""

from enum import Enum


class LedgerType(str, Enum):
    """거래 유형

    str을 상속하여 JSON 직렬화 가능.
    """

    INCOME = "income"  # 외부 유입
    EXPENSE = "expense"  # 외부 지출
    TRANSFER = "transfer"  # 내부 계정 간 이동
    FEE = "fee"  # 수수료
    ADJUSTMENT = "adjustment"  # 잔액 조정


class LedgerStatus(str, Enum):
    """거래 상태 (posted → voided 단방향)"""

    POSTED = "posted"
    VOIDED = "voided"


# 외부 계정 접두사 (학교 밖의 돈 흐름 표시용, 잔액 의미 없음)
EXTERNAL_PREFIX: str = "ext:"


class LedgerKey(str, Enum):
    """고정 계정 키

    UE/CX 계정과 가맹점은 자신의 id를 키로 사용한다.
    """

    CASH = "cash"
    PIX_BB = "pix_bb"
    DIGITAL_ESCOLAWEB = "digital_escolaweb"
    SAFE = "safe"
    RESOURCE_UE = "resource_ue"
    RESOURCE_CX = "resource_cx"
    EXT_INCOME = "ext:income"
    EXT_EXPENSE = "ext:expense"


# 고정 키 → 표시 이름
ACCOUNT_NAMES: dict[str, str] = {
    LedgerKey.CASH.value: "Espécie",
    LedgerKey.PIX_BB.value: "PIX (Conta BB)",
    LedgerKey.DIGITAL_ESCOLAWEB.value: "Conta Digital (Escolaweb)",
    LedgerKey.SAFE.value: "Cofre",
    LedgerKey.RESOURCE_UE.value: "Conta UE",
    LedgerKey.RESOURCE_CX.value: "Conta CX",
    LedgerKey.EXT_INCOME.value: "Entrada Externa",
    LedgerKey.EXT_EXPENSE.value: "Gasto Externo",
}

# 학부모회(associacao) 소유 고정 키
ASSOCIATION_KEYS: tuple[str, ...] = (
    LedgerKey.CASH.value,
    LedgerKey.PIX_BB.value,
    LedgerKey.DIGITAL_ESCOLAWEB.value,
    LedgerKey.SAFE.value,
)


class ModuleKey(str, Enum):
    """업무 모듈 (metadata.module)"""

    MENSALIDADE = "mensalidade"
    MENSALIDADE_PIX = "mensalidade_pix"
    GASTO_ASSOCIACAO = "gasto_associacao"
    ESPECIE_TRANSFER = "especie_transfer"
    ASSOC_TRANSFER = "assoc_transfer"
    ESPECIE_DEPOSITO_PIX = "especie_deposito_pix"
    ESPECIE_AJUSTE = "especie_ajuste"
    PIX_AJUSTE = "pix_ajuste"
    COFRE_AJUSTE = "cofre_ajuste"
    CONTA_DIGITAL_AJUSTE = "conta_digital_ajuste"
    RECURSO_AJUSTE = "recurso_ajuste"
    CONTA_DIGITAL_TAXA = "conta_digital_taxa"
    TAXA_PIX_BB = "taxa_pix_bb"
    APORTE_SALDO = "aporte_saldo"
    CONSUMO_SALDO = "consumo_saldo"
    APORTE_ESTABELECIMENTO_RECURSO = "aporte_estabelecimento_recurso"
    PIX_DIRETO_UECX = "pix_direto_uecx"
    ENTRADA_RECURSO = "entrada_recurso"
    PIX_NAO_IDENTIFICADO = "pix_nao_identificado"
    OUTROS = "outros"


MODULE_LABELS: dict[str, str] = {
    ModuleKey.MENSALIDADE.value: "Mensalidade",
    ModuleKey.MENSALIDADE_PIX.value: "Mensalidade (PIX)",
    ModuleKey.GASTO_ASSOCIACAO.value: "Despesa Associação",
    ModuleKey.ESPECIE_TRANSFER.value: "Movimentação entre Contas",
    ModuleKey.ASSOC_TRANSFER.value: "Movimentação Associação",
    ModuleKey.ESPECIE_DEPOSITO_PIX.value: "Depósito PIX",
    ModuleKey.ESPECIE_AJUSTE.value: "Ajuste de Saldo (Espécie)",
    ModuleKey.PIX_AJUSTE.value: "Ajuste de Saldo (PIX)",
    ModuleKey.COFRE_AJUSTE.value: "Ajuste de Saldo (Cofre)",
    ModuleKey.CONTA_DIGITAL_AJUSTE.value: "Ajuste Conta Digital",
    ModuleKey.RECURSO_AJUSTE.value: "Ajuste de Saldo (Recurso)",
    ModuleKey.CONTA_DIGITAL_TAXA.value: "Taxa Escolaweb",
    ModuleKey.TAXA_PIX_BB.value: "Taxas PIX BB",
    ModuleKey.APORTE_SALDO.value: "Aporte de Saldo",
    ModuleKey.CONSUMO_SALDO.value: "Gasto Estabelecimento",
    ModuleKey.APORTE_ESTABELECIMENTO_RECURSO.value: "Aporte em Estabelecimento (Recurso)",
    ModuleKey.PIX_DIRETO_UECX.value: "Gasto de Recurso",
    ModuleKey.ENTRADA_RECURSO.value: "Entrada de Recurso",
    ModuleKey.PIX_NAO_IDENTIFICADO.value: "PIX Não Identificado",
    ModuleKey.OUTROS.value: "Outros",
}

# 조정 대상 계정 → 조정 모듈
ADJUSTMENT_MODULES: dict[str, ModuleKey] = {
    LedgerKey.CASH.value: ModuleKey.ESPECIE_AJUSTE,
    LedgerKey.PIX_BB.value: ModuleKey.PIX_AJUSTE,
    LedgerKey.SAFE.value: ModuleKey.COFRE_AJUSTE,
    LedgerKey.DIGITAL_ESCOLAWEB.value: ModuleKey.CONTA_DIGITAL_AJUSTE,
}


def module_label(module: str | None) -> str:
    """모듈 표시 이름 (알 수 없으면 Outros)"""
    if not module:
        return MODULE_LABELS[ModuleKey.OUTROS.value]
    return MODULE_LABELS.get(module, MODULE_LABELS[ModuleKey.OUTROS.value])


# 초기 회계 주체 (스키마 생성 시 사용)
INITIAL_ENTITIES: list[tuple[str, str, str]] = [
    # (entity_id, name, type)
    ("associacao", "Associação CMCB-XI", "associacao"),
    ("ue", "Unidade Executora CMCB-XI", "ue"),
    ("cx", "Caixa Escolar CMCB-XI", "cx"),
]

# 초기 계정 목록
INITIAL_ACCOUNTS: list[tuple[str, str, str, str]] = [
    # (account_id, name, entity_id, ledger_key)
    ("cash", ACCOUNT_NAMES["cash"], "associacao", "cash"),
    ("pix_bb", ACCOUNT_NAMES["pix_bb"], "associacao", "pix_bb"),
    ("digital_escolaweb", ACCOUNT_NAMES["digital_escolaweb"], "associacao", "digital_escolaweb"),
    ("safe", ACCOUNT_NAMES["safe"], "associacao", "safe"),
    ("resource_ue", ACCOUNT_NAMES["resource_ue"], "ue", "resource_ue"),
    ("resource_cx", ACCOUNT_NAMES["resource_cx"], "cx", "resource_cx"),
]
