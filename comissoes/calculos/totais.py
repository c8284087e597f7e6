"""
Recálculo de linhas e dos totais desnormalizados de uma venda.
"""

from typing import Iterable, List, Tuple

from comissoes.calculos.comissao import calcular_comissao
from comissoes.calculos.lucro import DadosCalculoLucro, ResultadoLucro, calcular_lucro_linha
from comissoes.modelos import LinhaVenda, TipoArtigo, Venda


def aplicar_snapshot_tipo(linha: LinhaVenda, tipo: TipoArtigo) -> LinhaVenda:
    """
    Associa a linha a um tipo de artigo e copia a percentagem de comissão atual.

    Alterações posteriores ao tipo não afetam a linha.
    """
    return linha.model_copy(
        update={
            "tipo_artigo_id": tipo.id,
            "percentagem_comissao_snapshot": tipo.percentagem_comissao,
        }
    )


def calcular_linha(linha: LinhaVenda) -> Tuple[LinhaVenda, ResultadoLucro]:
    """
    Recalcula lucro e comissão de uma linha.

    Returns:
        (linha atualizada, detalhe do cálculo de lucro)

    Raises:
        LucroInvalido: se o lucro resultante for negativo (ex.: desconto elevado)
    """
    resultado = calcular_lucro_linha(DadosCalculoLucro.da_linha(linha))
    comissao = calcular_comissao(resultado.lucro_linha, linha.percentagem_comissao_snapshot)

    atualizada = linha.model_copy(
        update={"lucro_calculado": resultado.lucro_linha, "comissao_calculada": comissao}
    )
    return atualizada, resultado


def recalcular_linha(linha: LinhaVenda) -> LinhaVenda:
    return calcular_linha(linha)[0]


def recalcular_totais_venda(venda: Venda, linhas: Iterable[LinhaVenda]) -> Tuple[Venda, List[LinhaVenda]]:
    """
    Recalcula todas as linhas e os totais da venda a partir delas.

    valor_total = soma dos totais de venda das linhas (com desconto)
    lucro_total = soma de lucro_calculado
    comissao_total = soma de comissao_calculada

    Returns:
        (venda atualizada, linhas recalculadas e ligadas à venda)
    """
    linhas_calculadas: List[LinhaVenda] = []
    valor_total = 0.0
    lucro_total = 0.0
    comissao_total = 0.0

    for linha in linhas:
        atualizada, resultado = calcular_linha(linha.model_copy(update={"venda_id": venda.id}))
        linhas_calculadas.append(atualizada)
        valor_total += resultado.total_venda_linha
        lucro_total += atualizada.lucro_calculado
        comissao_total += atualizada.comissao_calculada

    venda_atualizada = venda.model_copy(
        update={
            "valor_total": valor_total,
            "lucro_total": lucro_total,
            "comissao_total": comissao_total,
        }
    )
    return venda_atualizada, linhas_calculadas
