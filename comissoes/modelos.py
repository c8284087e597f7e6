"""
Modelos de dados das entidades do sistema de comissões.

Cada entidade pertence a um único utilizador (`utilizador_id`) e é validada
com pydantic à entrada do repositório de registos.
"""

import re
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from comissoes.utils.normalization import normalize_text


MESES_PT = [
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]

MESES_ABREVIADOS_PT = ["jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez"]

_MESES_NORMALIZADOS = {normalize_text(nome): idx + 1 for idx, nome in enumerate(MESES_PT)}


def _novo_id() -> str:
    return str(uuid.uuid4())


class EstadoVenda(str, Enum):
    PENDENTE = "pendente"
    PARCIAL = "parcial"
    PAGO = "pago"


class MetodoCalculo(str, Enum):
    MANUAL = "manual"
    MARGEM_CUSTO = "margem_custo"
    MARGEM_VENDA = "margem_venda"


class TipoAlerta(str, Enum):
    DIVERGENCIA = "divergencia"
    COBRANCA = "cobranca"
    PREVISAO = "previsao"


class PeriodoComissao(BaseModel):
    """
    Período (mês/ano) em que a comissão de uma venda foi recebida.

    A ordenação usa sempre o par (ano, mes); o rótulo "Março 2026" é apenas
    para apresentação.
    """

    model_config = ConfigDict(frozen=True)

    ano: int = Field(ge=1900)
    mes: int = Field(ge=1, le=12)

    @property
    def rotulo(self) -> str:
        return f"{MESES_PT[self.mes - 1]} {self.ano}"

    @property
    def chave(self) -> Tuple[int, int]:
        return (self.ano, self.mes)

    @classmethod
    def de_data(cls, data: date) -> "PeriodoComissao":
        return cls(ano=data.year, mes=data.month)

    @classmethod
    def de_rotulo(cls, texto: str) -> "PeriodoComissao":
        """
        Converte um rótulo de período em texto livre.

        Aceita "Março 2026" (com ou sem acentos, qualquer capitalização),
        "2026-03" e "03/2026".

        Raises:
            ValueError: se o texto não corresponder a nenhum formato conhecido
        """
        bruto = str(texto or "").strip()

        iso = re.fullmatch(r"(\d{4})-(\d{1,2})", bruto)
        if iso:
            return cls(ano=int(iso.group(1)), mes=int(iso.group(2)))

        barra = re.fullmatch(r"(\d{1,2})/(\d{4})", bruto)
        if barra:
            return cls(ano=int(barra.group(2)), mes=int(barra.group(1)))

        partes = normalize_text(bruto).replace(" DE ", " ").split()
        if len(partes) == 2 and partes[0] in _MESES_NORMALIZADOS and partes[1].isdigit():
            return cls(ano=int(partes[1]), mes=_MESES_NORMALIZADOS[partes[0]])

        raise ValueError(f"Período inválido: '{texto}'")

    def __str__(self) -> str:
        return self.rotulo


class TipoArtigo(BaseModel):
    id: str = Field(default_factory=_novo_id)
    utilizador_id: str
    nome: str = Field(min_length=1)
    percentagem_comissao: float = Field(ge=0, le=100)
    ativo: bool = True


class Cliente(BaseModel):
    id: str = Field(default_factory=_novo_id)
    utilizador_id: str
    nome: str = Field(min_length=1)
    nif: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    morada: Optional[str] = None

    @field_validator("nome")
    @classmethod
    def _nome_obrigatorio(cls, valor: str) -> str:
        if not valor.strip():
            raise ValueError("Nome do cliente é obrigatório")
        return valor.strip()


class Venda(BaseModel):
    """Fatura de venda com os totais desnormalizados das suas linhas."""

    id: str = Field(default_factory=_novo_id)
    utilizador_id: str
    cliente_id: str
    numero_fatura: str
    data_venda: date
    observacoes: Optional[str] = None
    estado: EstadoVenda = EstadoVenda.PENDENTE
    valor_total: float = 0.0
    lucro_total: float = 0.0
    comissao_total: float = 0.0
    comissao_recebida_paga: bool = False
    periodo_comissao_recebida: Optional[PeriodoComissao] = None

    @field_validator("numero_fatura", mode="before")
    @classmethod
    def _numero_como_texto(cls, valor: Any) -> str:
        if isinstance(valor, float) and valor.is_integer():
            valor = int(valor)
        return str(valor).strip()

    @field_validator("periodo_comissao_recebida", mode="before")
    @classmethod
    def _periodo_de_texto(cls, valor: Any) -> Any:
        # rótulos antigos em texto livre ("Março 2026") passam a período tipado
        if isinstance(valor, str):
            if not valor.strip():
                return None
            return PeriodoComissao.de_rotulo(valor)
        return valor


class LinhaVenda(BaseModel):
    """
    Linha de uma venda.

    Apenas os campos do `metodo_calculo` escolhido contam para o lucro; os
    restantes são ignorados mesmo que preenchidos.
    """

    id: str = Field(default_factory=_novo_id)
    venda_id: str
    artigo: str
    tipo_artigo_id: str
    quantidade: float = Field(gt=0)
    metodo_calculo: MetodoCalculo

    lucro_manual: Optional[float] = None

    preco_custo: Optional[float] = None
    percentagem_custo: Optional[float] = None

    preco_venda: Optional[float] = None
    percentagem_venda: Optional[float] = None

    percentagem_desconto: float = Field(default=0.0, ge=0, le=100)

    # copiada do tipo de artigo no momento da criação/edição
    percentagem_comissao_snapshot: float = Field(default=0.0, ge=0, le=100)

    lucro_calculado: float = 0.0
    comissao_calculada: float = 0.0

    @field_validator("percentagem_desconto", mode="before")
    @classmethod
    def _desconto_padrao(cls, valor: Any) -> Any:
        return 0.0 if valor is None else valor


class PagamentoRecebido(BaseModel):
    """Recebimento de comissão registado manualmente."""

    id: str = Field(default_factory=_novo_id)
    utilizador_id: str
    data_pagamento: date
    valor: float = Field(gt=0)
    periodo_referencia: str
    observacoes: Optional[str] = None


class Alerta(BaseModel):
    id: str = Field(default_factory=_novo_id)
    utilizador_id: str
    tipo: TipoAlerta
    mensagem: str
    dados_contexto: Dict[str, Any] = Field(default_factory=dict)
    lido: bool = False
    criado_em: datetime = Field(default_factory=datetime.now)

    @field_validator("dados_contexto", mode="before")
    @classmethod
    def _contexto_vazio(cls, valor: Any) -> Any:
        return {} if valor is None else valor


class PreferenciaOrdenacao(BaseModel):
    """Preferência de ordenação da listagem de vendas de um utilizador."""

    chave: Literal["data_venda", "numero_fatura", "cliente", "valor_total", "comissao_total", "estado"] = "data_venda"
    direcao: Literal["asc", "desc"] = "desc"


__all__: List[str] = [
    "MESES_PT",
    "MESES_ABREVIADOS_PT",
    "EstadoVenda",
    "MetodoCalculo",
    "TipoAlerta",
    "PeriodoComissao",
    "TipoArtigo",
    "Cliente",
    "Venda",
    "LinhaVenda",
    "PagamentoRecebido",
    "Alerta",
    "PreferenciaOrdenacao",
]
