"""
Linhas planas para exportação do relatório de vendas.

Os valores saem já calculados e arredondados a 2 casas. `exportar_excel`
grava-os numa folha RELATORIO com os grupos de colunas pintados.
"""

import logging
import os
from typing import Dict, Iterable, List, Mapping

import pandas as pd

from comissoes.calculos.lucro import DadosCalculoLucro, calcular_lucro_linha
from comissoes.modelos import LinhaVenda, Venda
from comissoes.utils.styling import style_output_workbook


logger = logging.getLogger(__name__)

FOLHA_RELATORIO = "RELATORIO"

COLUNAS_EXPORTACAO = [
    "DATA",
    "Cliente",
    "FATURA",
    "CUSTO",
    "NEGÓCIO FECHADO",
    "VALOR",
    "Valor/Comiss",
    "COMISSÃO (%)",
    "COMISSÃO TOTAL",
    "PAGO CO",
]

COLUNAS_NUMERICAS = ["CUSTO", "VALOR", "Valor/Comiss", "COMISSÃO (%)", "COMISSÃO TOTAL"]


def criar_linhas_exportacao(
    vendas: Iterable[Venda],
    linhas: Iterable[LinhaVenda],
    nomes_clientes: Mapping[str, str],
) -> pd.DataFrame:
    """
    Uma linha por linha de venda, pela ordem das vendas recebidas.

    - CUSTO: preço de custo unitário (0 se não indicado)
    - VALOR: total de venda da linha, com desconto
    - Valor/Comiss: lucro da linha
    - PAGO CO: estado de pagamento ("Pendente", "Parcial", "Pago")

    Args:
        vendas: Vendas a exportar
        linhas: Linhas dessas vendas
        nomes_clientes: {cliente_id: nome}

    Returns:
        DataFrame com as colunas de COLUNAS_EXPORTACAO
    """
    linhas_por_venda: Dict[str, List[LinhaVenda]] = {}
    for linha in linhas:
        linhas_por_venda.setdefault(linha.venda_id, []).append(linha)

    registos = []
    for venda in vendas:
        for linha in linhas_por_venda.get(venda.id, []):
            resultado = calcular_lucro_linha(DadosCalculoLucro.da_linha(linha))
            registos.append(
                {
                    "DATA": venda.data_venda,
                    "Cliente": nomes_clientes.get(venda.cliente_id, ""),
                    "FATURA": venda.numero_fatura,
                    "CUSTO": linha.preco_custo or 0.0,
                    "NEGÓCIO FECHADO": linha.artigo,
                    "VALOR": resultado.total_venda_linha,
                    "Valor/Comiss": linha.lucro_calculado,
                    "COMISSÃO (%)": linha.percentagem_comissao_snapshot,
                    "COMISSÃO TOTAL": linha.comissao_calculada,
                    "PAGO CO": venda.estado.value.capitalize(),
                }
            )

    df = pd.DataFrame(registos, columns=COLUNAS_EXPORTACAO)
    for coluna in COLUNAS_NUMERICAS:
        df[coluna] = df[coluna].astype(float).round(2)
    return df


def exportar_excel(df: pd.DataFrame, filepath: str) -> str:
    """
    Grava as linhas de exportação num ficheiro Excel e estiliza a folha.

    Args:
        df: Resultado de `criar_linhas_exportacao`
        filepath: Caminho do ficheiro .xlsx (as pastas são criadas)

    Returns:
        Caminho do ficheiro gravado
    """
    os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)

    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=FOLHA_RELATORIO, index=False)

    style_output_workbook(filepath, [FOLHA_RELATORIO])
    logger.info("[RELATORIOS] %d linha(s) exportadas para %s", len(df), filepath)
    return filepath
