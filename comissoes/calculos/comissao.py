"""
Cálculo de comissões.

Comissão = Lucro × (Percentagem ÷ 100), com a percentagem copiada do tipo de
artigo para a linha (snapshot) no momento do registo.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Union

import pandas as pd

from comissoes.calculos.lucro import DadosCalculoLucro, calcular_lucro_linha
from comissoes.erros import LucroInvalido, PercentagemInvalida
from comissoes.modelos import EstadoVenda, LinhaVenda, PagamentoRecebido, TipoArtigo, Venda
from comissoes.utils.formatters import formatar_valor


LIMITE_DIVERGENCIA_PERCENTAGEM = 5.0
LIMITE_DIVERGENCIA_VALOR = 5.0


@dataclass
class Divergencia:
    divergencia: float
    percentagem: float
    tem_divergencia: bool


@dataclass
class ComissaoPorTipo:
    tipo_artigo_id: str
    tipo_artigo_nome: str
    quantidade_linhas: int
    total_vendas: float
    total_lucro: float
    total_comissao: float
    percentagem_media: float


def calcular_comissao(lucro: float, percentagem_comissao: float) -> float:
    """
    Calcula a comissão de um lucro.

    Args:
        lucro: Lucro em euros (>= 0)
        percentagem_comissao: Percentagem de comissão (0-100)

    Returns:
        Comissão em euros

    Raises:
        LucroInvalido: lucro negativo
        PercentagemInvalida: percentagem fora de [0, 100]
    """
    if lucro < 0:
        raise LucroInvalido(lucro)

    if percentagem_comissao < 0 or percentagem_comissao > 100:
        raise PercentagemInvalida("percentagem_comissao", percentagem_comissao)

    return lucro * (percentagem_comissao / 100)


def calcular_comissao_linha(linha: LinhaVenda) -> float:
    """Recalcula o lucro da linha e aplica a percentagem em snapshot."""
    lucro = calcular_lucro_linha(DadosCalculoLucro.da_linha(linha)).lucro_linha
    return calcular_comissao(lucro, linha.percentagem_comissao_snapshot)


def calcular_comissao_venda(linhas: Iterable[LinhaVenda]) -> float:
    return sum((calcular_comissao_linha(linha) for linha in linhas), 0.0)


def somar_comissoes(vendas: Iterable[Venda]) -> float:
    return sum((venda.comissao_total for venda in vendas), 0.0)


# =====================================================
# BOA COBRANÇA
# =====================================================


def esta_em_boa_cobranca(venda: Venda) -> bool:
    """Uma venda está em boa cobrança quando o cliente já a pagou."""
    return venda.estado == EstadoVenda.PAGO


def calcular_comissao_validada(vendas: Iterable[Venda]) -> float:
    return somar_comissoes(v for v in vendas if esta_em_boa_cobranca(v))


def calcular_comissao_pendente(vendas: Iterable[Venda]) -> float:
    return somar_comissoes(v for v in vendas if not esta_em_boa_cobranca(v))


def calcular_total_recebido(pagamentos: Iterable[PagamentoRecebido]) -> float:
    return sum((pagamento.valor for pagamento in pagamentos), 0.0)


# =====================================================
# DIVERGÊNCIAS
# =====================================================


def calcular_divergencia(
    comissao_esperada: float,
    valor_recebido: float,
    limite_percentagem: float = LIMITE_DIVERGENCIA_PERCENTAGEM,
    limite_valor: float = LIMITE_DIVERGENCIA_VALOR,
) -> Divergencia:
    """
    Compara a comissão esperada com o valor recebido.

    Há divergência quando a diferença ultrapassa 5% OU 5 €, para não alertar
    por arredondamentos.

    Args:
        comissao_esperada: Comissão validada (esperada)
        valor_recebido: Valor efetivamente recebido
        limite_percentagem: Tolerância em percentagem
        limite_valor: Tolerância em euros

    Returns:
        Divergencia(divergencia=recebido-esperado, percentagem, tem_divergencia)
    """
    divergencia = valor_recebido - comissao_esperada
    percentagem = (divergencia / comissao_esperada) * 100 if comissao_esperada > 0 else 0.0

    tem_divergencia = abs(percentagem) > limite_percentagem or abs(divergencia) > limite_valor

    return Divergencia(divergencia=divergencia, percentagem=percentagem, tem_divergencia=tem_divergencia)


def deve_alertar_divergencia(comissao_esperada: float, valor_recebido: float, **limites) -> bool:
    return calcular_divergencia(comissao_esperada, valor_recebido, **limites).tem_divergencia


# =====================================================
# COMISSÕES POR TIPO DE ARTIGO
# =====================================================


def _nome_tipo(tipos: Mapping[str, Union[str, TipoArtigo]], tipo_id: str) -> str:
    tipo = tipos.get(tipo_id)
    if tipo is None:
        return "Desconhecido"
    return tipo.nome if isinstance(tipo, TipoArtigo) else str(tipo)


def agrupar_comissoes_por_tipo(
    linhas: Iterable[LinhaVenda],
    tipos: Mapping[str, Union[str, TipoArtigo]],
) -> List[ComissaoPorTipo]:
    """
    Agrupa linhas por tipo de artigo.

    A percentagem média é a média simples das percentagens em snapshot das
    linhas (não ponderada pelo lucro).

    Args:
        linhas: Linhas com lucro e comissão já calculados
        tipos: {tipo_artigo_id: TipoArtigo ou nome}

    Returns:
        Lista de ComissaoPorTipo pela ordem em que cada tipo aparece
    """
    df = pd.DataFrame(
        [
            {
                "tipo_artigo_id": linha.tipo_artigo_id,
                "quantidade": linha.quantidade,
                "lucro": linha.lucro_calculado,
                "comissao": linha.comissao_calculada,
                "percentagem": linha.percentagem_comissao_snapshot,
            }
            for linha in linhas
        ]
    )
    if df.empty:
        return []

    resumo = (
        df.groupby("tipo_artigo_id", sort=False)
        .agg(
            quantidade_linhas=("percentagem", "size"),
            total_vendas=("quantidade", "sum"),
            total_lucro=("lucro", "sum"),
            total_comissao=("comissao", "sum"),
            percentagem_media=("percentagem", "mean"),
        )
        .reset_index()
    )

    return [
        ComissaoPorTipo(
            tipo_artigo_id=row.tipo_artigo_id,
            tipo_artigo_nome=_nome_tipo(tipos, row.tipo_artigo_id),
            quantidade_linhas=int(row.quantidade_linhas),
            total_vendas=float(row.total_vendas),
            total_lucro=float(row.total_lucro),
            total_comissao=float(row.total_comissao),
            percentagem_media=float(row.percentagem_media),
        )
        for row in resumo.itertuples(index=False)
    ]


# =====================================================
# SIMULADOR
# =====================================================


def simular_comissao(lucro_estimado: float, percentagem_comissao: float) -> Dict[str, object]:
    """Simula a comissão para um lucro estimado e uma percentagem."""
    comissao = calcular_comissao(lucro_estimado, percentagem_comissao)

    return {
        "lucro": lucro_estimado,
        "percentagem": percentagem_comissao,
        "comissao": comissao,
        "comissao_formatada": formatar_valor(comissao),
    }
